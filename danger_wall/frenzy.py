"""
Frenzy Mode
============
Timed sentence typing with accuracy scoring and a movable deadline.
"""

import logging
import math
from typing import List, Optional

from .components import (
    FrenzyPhase, FrenzyState, FrenzyWordResult, GameEvent
)
from .config import GameSettings

logger = logging.getLogger(__name__)


# =============================================================================
# TUNING
# =============================================================================

MIN_DURATION_MS = 5000.0
MAX_DURATION_MS = 60000.0
TYPO_PENALTY_MS = 2000.0
TYPO_COOLDOWN_MS = 500.0
CORRECT_WORD_BONUS_MS = 3000.0
MAX_INPUT_LENGTH = 50

# Accuracy thresholds for submitted words
EXTEND_ACCURACY = 0.8
PENALTY_ACCURACY = 0.6

# (minimum, multiplier), checked top-down
WPM_MULTIPLIERS = [(80, 3.0), (60, 2.5), (40, 2.0), (25, 1.5), (15, 1.0)]
WPM_FLOOR_MULTIPLIER = 0.5

ACCURACY_MULTIPLIERS = [
    (0.95, 2.5), (0.90, 2.0), (0.80, 1.5), (0.70, 1.0), (0.50, 0.7)
]
ACCURACY_FLOOR_MULTIPLIER = 0.3


def round_half_up(value: float) -> int:
    """Round .5 upward, the way score displays expect."""
    return int(math.floor(value + 0.5))


def _lookup(table, value, floor):
    for minimum, multiplier in table:
        if value >= minimum:
            return multiplier
    return floor


def calculate_word_accuracy(user_input: str, target_word: str) -> float:
    """Positional accuracy with a penalty for length mismatch. 1.0 only on an exact match."""
    if not user_input or not target_word:
        return 0.0

    user = user_input.lower().strip()
    target = target_word.lower().strip()
    if user == target:
        return 1.0

    correct = sum(1 for a, b in zip(user, target) if a == b)
    length_penalty = abs(len(user) - len(target)) / len(target)
    return max(0.0, correct / len(target) - length_penalty * 0.5)


def score_frenzy_word(accuracy: float, word_length: int) -> int:
    base = 25 + word_length * 2
    return int(math.floor(base * max(0.3, accuracy) * 5))


class FrenzyController:
    """
    Owns the frenzy state machine:

        INACTIVE -> COUNTDOWN (optional) -> ACTIVE -> COMPLETED | TIMED_OUT -> INACTIVE

    Transitions out of COMPLETED/TIMED_OUT happen in update() once the
    result has been on screen long enough.
    """

    def __init__(self, clock, word_source, settings: Optional[GameSettings] = None):
        self.clock = clock
        self.word_source = word_source
        self.settings = settings or GameSettings()
        self.words_since_frenzy = 0
        self.state = self._new_state()
        self._events: List[GameEvent] = []

    def _new_state(self) -> FrenzyState:
        return FrenzyState(
            duration=self.settings.frenzy_duration_ms,
            time_remaining=self.settings.frenzy_duration_ms,
        )

    # -------------------------------------------------------------------------
    # Trigger
    # -------------------------------------------------------------------------

    def register_word(self) -> bool:
        """Count a completed normal word. True when a frenzy is due."""
        self.words_since_frenzy += 1
        return self.words_since_frenzy >= self.settings.frenzy_trigger_interval

    def is_engaged(self) -> bool:
        return self.state.phase != FrenzyPhase.INACTIVE

    @property
    def active(self) -> bool:
        return self.state.phase == FrenzyPhase.ACTIVE

    @property
    def current_word(self) -> str:
        if self.state.current_word_index < len(self.state.sentence_words):
            return self.state.sentence_words[self.state.current_word_index]
        return ''

    def start(self) -> None:
        if self.is_engaged():
            raise RuntimeError("Frenzy already in progress")

        sentence = self.word_source.next_frenzy_sentence()
        now = self.clock.now()

        self.words_since_frenzy = 0
        self.state = self._new_state()
        self.state.theme = sentence.theme
        self.state.sentence_words = list(sentence.words)

        logger.info(
            "Frenzy triggered",
            extra={'theme': sentence.theme, 'words': len(sentence.words)},
        )

        if self.settings.frenzy_countdown_ms > 0:
            self.state.phase = FrenzyPhase.COUNTDOWN
            self.state.countdown_start = now
            self._events.append(GameEvent('frenzy_countdown', {
                'duration_ms': self.settings.frenzy_countdown_ms,
            }))
        else:
            self._begin(now)

    def _begin(self, now: float) -> None:
        self.state.phase = FrenzyPhase.ACTIVE
        self.state.start_time = now
        self.state.time_remaining = self.state.duration
        self._events.append(GameEvent('frenzy_started', {
            'theme': self.state.theme,
            'sentence': ' '.join(self.state.sentence_words),
        }))

    # -------------------------------------------------------------------------
    # Timer arithmetic
    # -------------------------------------------------------------------------

    def _refresh_time_remaining(self, now: float) -> None:
        elapsed = now - self.state.start_time
        self.state.time_remaining = max(0.0, self.state.duration - elapsed)

    def extend_timer(self, bonus_ms: float) -> None:
        if not self.active:
            return
        self.state.duration = min(MAX_DURATION_MS, self.state.duration + bonus_ms)
        self._refresh_time_remaining(self.clock.now())
        logger.debug("Frenzy timer extended", extra={'bonus_ms': bonus_ms})

    def apply_typo_penalty(self) -> bool:
        """Pull the deadline in. Returns False while the cooldown holds."""
        if not self.active:
            return False

        now = self.clock.now()
        last = self.state.last_typo_time
        if last is not None and now - last < TYPO_COOLDOWN_MS:
            return False

        self.state.last_typo_time = now
        self.state.duration = max(MIN_DURATION_MS, self.state.duration - TYPO_PENALTY_MS)
        self._refresh_time_remaining(now)
        self._events.append(GameEvent('frenzy_penalty', {'penalty_ms': TYPO_PENALTY_MS}))
        return True

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def handle_input(self, text: str) -> Optional[FrenzyWordResult]:
        """
        Live input for the current word.

        A fresh mistake costs time. An exact match on the final word
        submits it without waiting for space.
        """
        text = text.lower()[:MAX_INPUT_LENGTH]
        self.state.current_input = text

        target = self.current_word
        if not self.active or not target:
            return None

        match = self.word_source.partial_match(text, target)
        if match.has_error and not self.state.had_error:
            self.apply_typo_penalty()
        self.state.had_error = match.has_error

        is_last_word = self.state.current_word_index == len(self.state.sentence_words) - 1
        if match.is_complete and is_last_word:
            return self.advance_word()
        return None

    def input_accuracy(self) -> float:
        return calculate_word_accuracy(self.state.current_input, self.current_word)

    def advance_word(self) -> Optional[FrenzyWordResult]:
        """Submit the current input for the current word. Empty input is refused."""
        target = self.current_word
        if not self.active or not target:
            return None

        user_input = self.state.current_input.strip()
        if not user_input:
            return None

        accuracy = calculate_word_accuracy(user_input, target)
        result = FrenzyWordResult(
            word=target,
            input=user_input,
            accuracy=accuracy,
            score=score_frenzy_word(accuracy, len(target)),
        )
        self.state.completed_words.append(result)
        self._track_word(user_input, target, accuracy)

        if accuracy >= EXTEND_ACCURACY:
            self.extend_timer(CORRECT_WORD_BONUS_MS * accuracy)
        elif accuracy < PENALTY_ACCURACY:
            self.apply_typo_penalty()

        self.state.current_word_index += 1
        self.state.current_input = ''
        self.state.had_error = False

        logger.debug(
            "Frenzy word submitted",
            extra={'word': target, 'accuracy': accuracy, 'score': result.score},
        )

        if self.state.current_word_index >= len(self.state.sentence_words):
            result.sentence_complete = True
            result.bonus = self._complete()
        return result

    def _track_word(self, user_input: str, target: str, accuracy: float) -> None:
        s = self.state
        s.total_characters_typed += len(user_input)
        s.correct_characters_typed += round_half_up(len(target) * accuracy)
        s.total_words += 1
        if accuracy == 1.0:
            s.perfect_words += 1

        minutes = (self.clock.now() - s.start_time) / 60000.0
        s.current_wpm = round_half_up(s.total_words / minutes) if minutes > 0 else 0
        s.wpm_history.append(s.current_wpm)
        s.average_accuracy = s.correct_characters_typed / max(1, s.total_characters_typed)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def calculate_performance_bonus(self) -> int:
        base = len(self.state.sentence_words) * 100
        wpm_mult = _lookup(WPM_MULTIPLIERS, self.state.current_wpm, WPM_FLOOR_MULTIPLIER)
        acc_mult = _lookup(
            ACCURACY_MULTIPLIERS, self.state.average_accuracy, ACCURACY_FLOOR_MULTIPLIER
        )
        perfect_bonus = self.state.perfect_words * 0.2
        return round_half_up(base * (wpm_mult + acc_mult) / 2 * (1 + perfect_bonus))

    def _complete(self) -> int:
        now = self.clock.now()
        self._refresh_time_remaining(now)
        bonus = self.calculate_performance_bonus()

        self.state.phase = FrenzyPhase.COMPLETED
        self.state.resolved_at = now
        self.state.bonus_awarded = bonus

        logger.info(
            "Frenzy completed",
            extra={
                'bonus': bonus,
                'wpm': self.state.current_wpm,
                'accuracy': self.state.average_accuracy,
            },
        )
        self._events.append(GameEvent('frenzy_completed', {
            'bonus': bonus,
            'wpm': self.state.current_wpm,
            'accuracy': self.state.average_accuracy,
            'perfect_words': self.state.perfect_words,
        }))
        return bonus

    def _time_out(self, now: float) -> None:
        self.state.phase = FrenzyPhase.TIMED_OUT
        self.state.resolved_at = now
        logger.info(
            "Frenzy timed out",
            extra={
                'words_done': self.state.current_word_index,
                'words_total': len(self.state.sentence_words),
            },
        )
        self._events.append(GameEvent('frenzy_timeout', {
            'words_done': self.state.current_word_index,
            'words_total': len(self.state.sentence_words),
        }))

    def update(self) -> List[GameEvent]:
        """Advance the phase machine against the clock. Returns new events."""
        now = self.clock.now()
        phase = self.state.phase

        if phase == FrenzyPhase.COUNTDOWN:
            if now - self.state.countdown_start >= self.settings.frenzy_countdown_ms:
                self._begin(now)

        elif phase == FrenzyPhase.ACTIVE:
            self._refresh_time_remaining(now)
            if self.state.time_remaining <= 0:
                self._time_out(now)

        elif phase in (FrenzyPhase.COMPLETED, FrenzyPhase.TIMED_OUT):
            if now - self.state.resolved_at >= self.settings.frenzy_result_display_ms:
                outcome = 'completed' if phase == FrenzyPhase.COMPLETED else 'timeout'
                self.state = self._new_state()
                self._events.append(GameEvent('frenzy_exit', {'outcome': outcome}))

        return self.take_events()

    def take_events(self) -> List[GameEvent]:
        events, self._events = self._events, []
        return events

    def reset(self) -> None:
        self.words_since_frenzy = 0
        self.state = self._new_state()
        self._events = []
