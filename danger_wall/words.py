"""
Word Sources
=============
The WordSource interface the game consumes, the shared prefix matcher,
and a default random source with small themed pools.
"""

import random
from typing import Dict, List, Optional, Protocol

from .components import (
    FrenzySentence, PartialMatch, PowerUpDrop, PowerUpType, Rarity, WordPair
)


def partial_match(input_text: str, target: str) -> PartialMatch:
    """Compare typed input against a target, stopping at the first wrong character."""
    typed = input_text.lower()
    wanted = target.lower()

    correct = 0
    for typed_char, wanted_char in zip(typed, wanted):
        if typed_char != wanted_char:
            break
        correct += 1

    return PartialMatch(
        correct_prefix_len=correct,
        target_length=len(wanted),
        is_complete=correct == len(wanted) and len(typed) == len(wanted),
        has_error=len(typed) > correct,
    )


class WordSource(Protocol):
    """Everything the game needs from a word provider."""

    def next_word_pair(self, score: float) -> WordPair: ...

    def next_frenzy_sentence(self) -> FrenzySentence: ...

    def boss_word_pool(self, theme: str, count: int) -> List[str]: ...

    def partial_match(self, input_text: str, target: str) -> PartialMatch: ...


# =============================================================================
# WORD TABLES
# =============================================================================
# Small samples per tier; swap in a richer WordSource for real content.

WORD_LISTS: Dict[str, List[str]] = {
    'easy': ['cat', 'dog', 'jump', 'code', 'game', 'play', 'type', 'red',
             'blue', 'light', 'dark', 'small', 'good', 'move'],
    'medium': ['keyboard', 'mouse', 'screen', 'window', 'button', 'finger',
               'typing', 'player', 'branch', 'switch', 'canvas', 'render'],
    'hard': ['algorithm', 'performance', 'framework', 'component', 'interface',
             'debugging', 'deployment', 'repository', 'callback', 'prototype'],
    'expert': ['encapsulation', 'abstraction', 'serialization', 'refactoring',
               'orchestration', 'scalability', 'observability', 'usability'],
}

POWER_UP_WORDS: Dict[PowerUpType, Dict[str, List[str]]] = {
    PowerUpType.SPEED: {
        'easy': ['run', 'fast', 'rush', 'zoom', 'dash'],
        'medium': ['speed', 'quick', 'boost', 'sprint'],
        'hard': ['velocity', 'momentum', 'propulsion'],
        'expert': ['acceleration', 'hypersonic'],
    },
    PowerUpType.TIME_WARP: {
        'easy': ['slow', 'wait', 'pause', 'hold'],
        'medium': ['delay', 'halt', 'stall'],
        'hard': ['decelerate', 'suspend', 'temporal'],
        'expert': ['chronostasis', 'deceleration'],
    },
    PowerUpType.SHIELD: {
        'easy': ['safe', 'hide', 'cover', 'guard'],
        'medium': ['shield', 'protect', 'armor'],
        'hard': ['protection', 'defensive', 'fortified'],
        'expert': ['invulnerable', 'impenetrable'],
    },
    PowerUpType.MULTIPLIER: {
        'easy': ['big', 'more', 'plus', 'mega'],
        'medium': ['power', 'super', 'ultra', 'bonus'],
        'hard': ['amplify', 'enhance', 'multiply'],
        'expert': ['exponential', 'magnification'],
    },
    PowerUpType.LASER_FOCUS: {
        'easy': ['aim', 'hit', 'lock', 'focus'],
        'medium': ['target', 'precise', 'accurate'],
        'hard': ['precision', 'calibrated'],
        'expert': ['pinpoint', 'meticulous'],
    },
    PowerUpType.FREEZE: {
        'easy': ['ice', 'cold', 'chill'],
        'medium': ['frozen', 'arctic', 'glacial'],
        'hard': ['cryogenic', 'suspended'],
        'expert': ['crystallized', 'immobilized'],
    },
}

BOSS_WORDS: Dict[str, List[str]] = {
    'tech': ['virus', 'malware', 'exploit', 'breach', 'firewall', 'packet',
             'protocol', 'buffer', 'trojan', 'rootkit', 'kernel', 'payload'],
    'programming': ['exception', 'null', 'syntax', 'runtime', 'compile',
                    'stack', 'heap', 'pointer', 'memory', 'deadlock', 'loop'],
    'errors': ['fatal', 'critical', 'warning', 'invalid', 'timeout', 'refused',
               'forbidden', 'corrupted', 'broken', 'crashed', 'denied'],
    'debugging': ['breakpoint', 'trace', 'inspect', 'watch', 'step', 'profile',
                  'logging', 'assert', 'console', 'debugger', 'symbol'],
}

FRENZY_SENTENCES: Dict[str, List[str]] = {
    'coding': [
        'the quick compiler turns code into running programs',
        'every function should do one thing and do it well',
    ],
    'adventure': [
        'the brave explorer crossed the frozen mountain pass',
        'a hidden door opened to reveal an ancient library',
    ],
    'space': [
        'the rocket climbed past the moon toward distant stars',
        'astronauts float through the station in silent orbit',
    ],
}

# Score thresholds for each difficulty tier
DIFFICULTY_THRESHOLDS = [(20, 'easy'), (50, 'medium'), (100, 'hard')]
POWER_UP_WORD_CHANCE = 0.6


def difficulty_for_score(score: float) -> str:
    for threshold, difficulty in DIFFICULTY_THRESHOLDS:
        if score < threshold:
            return difficulty
    return 'expert'


class RandomWordSource:
    """Default WordSource drawing from the tables above."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def roll_rarity(self) -> Rarity:
        roll = self.rng.random()
        if roll < 0.05:
            return Rarity.EPIC
        if roll < 0.25:
            return Rarity.RARE
        return Rarity.COMMON

    def _slot(self, difficulty: str):
        """One branch word, possibly carrying a power-up."""
        if self.rng.random() < POWER_UP_WORD_CHANCE:
            power_up_type = self.rng.choice(list(POWER_UP_WORDS))
            word = self.rng.choice(POWER_UP_WORDS[power_up_type][difficulty])
            return word, PowerUpDrop(power_up_type, self.roll_rarity())
        return self.rng.choice(WORD_LISTS[difficulty]), None

    def next_word_pair(self, score: float) -> WordPair:
        difficulty = difficulty_for_score(score)
        word1, drop1 = self._slot(difficulty)
        word2, drop2 = self._slot(difficulty)
        while word2 == word1:
            word2, drop2 = self._slot(difficulty)
        return WordPair(word1, word2, drop1, drop2)

    def next_frenzy_sentence(self) -> FrenzySentence:
        theme = self.rng.choice(list(FRENZY_SENTENCES))
        sentence = self.rng.choice(FRENZY_SENTENCES[theme])
        return FrenzySentence(words=sentence.split(' '), theme=theme)

    def boss_word_pool(self, theme: str, count: int) -> List[str]:
        """Unique words for the boss limbs, in random order."""
        words = BOSS_WORDS.get(theme, BOSS_WORDS['tech'])
        return self.rng.sample(words, min(count, len(words)))

    def partial_match(self, input_text: str, target: str) -> PartialMatch:
        return partial_match(input_text, target)
