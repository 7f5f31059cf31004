"""Shared pytest fixtures for all tests."""

import random

import pytest

from danger_wall.clock import ManualClock
from danger_wall.components import FrenzySentence, WordPair
from danger_wall.config import GameSettings
from danger_wall.game import GameOrchestrator
from danger_wall.words import partial_match

BOSS_WORDS = ['apple', 'berry', 'cherry', 'grape', 'lemon', 'mango', 'peach', 'plum']


class FixedWordSource:
    """
    Word source with predictable output.

    Pairs are served from a queue, falling back to alpha/bravo once it is
    empty. Every boss theme gets the same fruit words in order.
    """

    def __init__(self, pairs=None, sentence=None, boss_words=None):
        self.pairs = list(pairs or [])
        self.sentence = sentence or FrenzySentence(['fast', 'quick', 'brown', 'fox'], 'test')
        self.boss_words = BOSS_WORDS if boss_words is None else boss_words
        self.scores_seen = []

    def next_word_pair(self, score):
        self.scores_seen.append(score)
        if self.pairs:
            return self.pairs.pop(0)
        return WordPair('alpha', 'bravo')

    def next_frenzy_sentence(self):
        return self.sentence

    def boss_word_pool(self, theme, count):
        return self.boss_words[:count]

    def partial_match(self, input_text, target):
        return partial_match(input_text, target)


class RecordingWordSource(FixedWordSource):
    """FixedWordSource that remembers every prefix comparison it was asked for."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.matched = []

    def partial_match(self, input_text, target):
        self.matched.append((input_text, target))
        return super().partial_match(input_text, target)


@pytest.fixture
def clock():
    """Manual clock starting at t=0."""
    return ManualClock()


@pytest.fixture
def rng():
    """Seeded RNG so random picks repeat between runs."""
    return random.Random(1234)


@pytest.fixture
def word_source():
    return FixedWordSource()


@pytest.fixture
def settings():
    return GameSettings(_env_file=None)


@pytest.fixture
def make_game(clock, word_source, rng):
    """Factory for a started game, with optional settings overrides."""

    def _make(**overrides):
        game = GameOrchestrator(
            settings=GameSettings(_env_file=None, **overrides),
            clock=clock,
            word_source=word_source,
            rng=rng,
        )
        game.start_game()
        return game

    return _make


@pytest.fixture
def game(make_game):
    return make_game()


def type_text(game, text):
    """Feed the input line one keystroke at a time."""
    for i in range(1, len(text) + 1):
        game.handle_input(text[:i])
