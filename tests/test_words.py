"""Tests for prefix matching and the default word source."""

import random

import pytest

from danger_wall.components import Rarity
from danger_wall.words import (
    BOSS_WORDS, POWER_UP_WORDS, RandomWordSource, WORD_LISTS,
    difficulty_for_score, partial_match
)


class FakeRandom(random.Random):
    """Returns a fixed value from random()."""

    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


class TestPartialMatch:
    """Prefix comparison."""

    @pytest.mark.parametrize(
        "typed,target,correct,complete,error",
        [
            ('', 'cat', 0, False, False),
            ('ca', 'cat', 2, False, False),
            ('cat', 'cat', 3, True, False),
            ('CAT', 'cat', 3, True, False),
            ('cax', 'cat', 2, False, True),
            ('xat', 'cat', 0, False, True),
            ('cats', 'cat', 3, False, True),
        ],
    )
    def test_cases(self, typed, target, correct, complete, error):
        match = partial_match(typed, target)

        assert match.correct_prefix_len == correct
        assert match.target_length == len(target)
        assert match.is_complete is complete
        assert match.has_error is error


class TestDifficulty:
    """Score tiers."""

    @pytest.mark.parametrize(
        "score,tier",
        [(0, 'easy'), (19, 'easy'), (20, 'medium'), (49.5, 'medium'), (50, 'hard'), (100, 'expert')],
    )
    def test_difficulty_for_score(self, score, tier):
        assert difficulty_for_score(score) == tier


class TestRandomWordSource:
    """Default content provider."""

    @pytest.fixture
    def source(self):
        return RandomWordSource(random.Random(7))

    def test_pairs_are_distinct_and_tiered(self, source):
        for _ in range(50):
            pair = source.next_word_pair(0)
            assert pair.word1 != pair.word2

            for word, drop in ((pair.word1, pair.power_up1), (pair.word2, pair.power_up2)):
                if drop is None:
                    assert word in WORD_LISTS['easy']
                else:
                    assert word in POWER_UP_WORDS[drop.type]['easy']

    def test_expert_pairs(self, source):
        pair = source.next_word_pair(500)
        for word, drop in ((pair.word1, pair.power_up1), (pair.word2, pair.power_up2)):
            pool = POWER_UP_WORDS[drop.type]['expert'] if drop else WORD_LISTS['expert']
            assert word in pool

    @pytest.mark.parametrize("theme", sorted(BOSS_WORDS))
    def test_boss_pool_unique(self, source, theme):
        words = source.boss_word_pool(theme, 8)

        assert len(words) == 8
        assert len(set(words)) == 8
        assert set(words) <= set(BOSS_WORDS[theme])

    def test_unknown_theme_falls_back(self, source):
        words = source.boss_word_pool('nonsense', 4)
        assert set(words) <= set(BOSS_WORDS['tech'])

    def test_frenzy_sentence(self, source):
        sentence = source.next_frenzy_sentence()

        assert len(sentence.words) >= 4
        assert all(' ' not in word for word in sentence.words)
        assert sentence.sentence == ' '.join(sentence.words)

    @pytest.mark.parametrize(
        "roll,rarity",
        [(0.01, Rarity.EPIC), (0.1, Rarity.RARE), (0.24, Rarity.RARE), (0.5, Rarity.COMMON)],
    )
    def test_roll_rarity(self, roll, rarity):
        assert RandomWordSource(FakeRandom(roll)).roll_rarity() == rarity

    def test_partial_match_delegates(self, source):
        assert source.partial_match('do', 'dog').correct_prefix_len == 2
