"""
Game Orchestrator
==================
Normal word flow, score and combo, the danger wall tug-of-war, and the
hand-off into and out of frenzy and boss modes.
"""

import logging
import math
import random
import re
from typing import List, Optional

from .boss import BossSystem, SPECIAL_WARNING_MS, ATTACK_WARNING_MS
from .clock import MonotonicClock
from .components import (
    AttackWarningSnapshot, BackgroundState, BossPhase, BossSnapshot,
    FeverSnapshot, FrenzyPhase, FrenzySnapshot, GameEvent, GameOverStats,
    GameSnapshot, LimbSnapshot, PlayerState, PowerUpSnapshot, PowerUpType,
    RunSnapshot, RunState, TypingState
)
from .config import GameSettings
from .fever import FeverSystem
from .frenzy import FrenzyController, round_half_up
from .powerups import PowerUpSystem
from .words import RandomWordSource

logger = logging.getLogger(__name__)


PHASE_START = 'start'
PHASE_PLAYING = 'playing'
PHASE_GAME_OVER = 'game_over'

# Physics (per-ms deltas are scaled by TICK_SCALE)
TICK_SCALE = 0.016
SCROLL_PRESSURE = 0.008
SPEED_DECAY = 0.92
SAFE_WALL_POSITION = 0.95
MAX_SAFE_WALL_CONTACT = 3.0

SUB_MODE_ENTRY_POSITION = 0.9
SUB_MODE_EXIT_POSITION = 0.7
COUNTDOWN_HOLD_POSITION = 0.85

MAX_INPUT_LENGTH = 50
WPM_HISTORY_SIZE = 10

_DISALLOWED_CHARS = re.compile(r"[^\w\s'-]")


class GameOrchestrator:
    """Central game state. The UI feeds it keystrokes and ticks, and reads snapshots."""

    def __init__(self, settings: Optional[GameSettings] = None, clock=None,
                 word_source=None, rng: Optional[random.Random] = None):
        self.settings = settings or GameSettings()
        self.clock = clock or MonotonicClock()
        self.rng = rng or random.Random()
        self.word_source = word_source or RandomWordSource(self.rng)

        self.fever = FeverSystem(self.clock, self.settings.fever_rush_duration_ms)
        self.power_ups = PowerUpSystem(self.clock)
        self.frenzy = FrenzyController(self.clock, self.word_source, self.settings)
        self.boss = BossSystem(self.clock, self.word_source, self.settings, self.rng)

        self.phase = PHASE_START
        self.run = RunState()
        self.player = PlayerState()
        self.background = self._new_background()
        self.typing = TypingState()
        self.pair = None
        self.active_branch = 1
        self.game_over_stats: Optional[GameOverStats] = None

        self._events: List[GameEvent] = []

    def _new_background(self) -> BackgroundState:
        return BackgroundState(
            scroll_speed=self.settings.base_scroll_speed,
            base_speed=self.settings.base_scroll_speed,
            max_speed=self.settings.max_scroll_speed,
        )

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def start_game(self) -> None:
        """Reset everything and begin a new run."""
        self.fever.reset()
        self.power_ups.reset()
        self.frenzy.reset()
        self.boss.reset()

        self.run = RunState()
        self.player = PlayerState()
        self.background = self._new_background()
        self.typing = TypingState(start_time=self.clock.now())
        self.active_branch = 1
        self.pair = self.word_source.next_word_pair(self.run.score)
        self.game_over_stats = None

        self.phase = PHASE_PLAYING
        logger.info("Run started")
        self._events.append(GameEvent('game_started'))

    def game_over(self, reason: str) -> None:
        """Finalize stats and shut down every mode. Safe to call more than once."""
        if self.phase != PHASE_PLAYING:
            return

        self.game_over_stats = GameOverStats(
            score=int(self.run.score),
            best_wpm=self.run.best_wpm,
            words_completed=self.run.words_completed,
            reason=reason,
        )
        self.phase = PHASE_GAME_OVER

        self.frenzy.reset()
        self.boss.reset()
        self.power_ups.reset()
        self.fever.reset()
        self.typing.current_input = ''

        logger.info(
            "Game over",
            extra={
                'reason': reason,
                'score': self.game_over_stats.score,
                'best_wpm': self.game_over_stats.best_wpm,
                'words': self.game_over_stats.words_completed,
            },
        )
        self._events.append(GameEvent('game_over', {'stats': self.game_over_stats}))

    @property
    def sub_mode_engaged(self) -> bool:
        return self.frenzy.is_engaged() or self.boss.is_engaged()

    @property
    def target_word(self) -> str:
        if self.pair is None:
            return ''
        return self.pair.word1 if self.active_branch == 1 else self.pair.word2

    def accepts_spaces(self) -> bool:
        """True while the input being typed may contain spaces (the boss chant)."""
        return self.boss.state.phase == BossPhase.SPECIAL_WARNING

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def handle_input(self, text: str) -> None:
        """Receive the full contents of the input line after a keystroke."""
        if self.phase != PHASE_PLAYING:
            return

        if self.boss.is_engaged():
            self._handle_boss_input(text)
        elif self.frenzy.is_engaged():
            self._handle_frenzy_input(text)
        else:
            self._handle_normal_input(text)

        self.update_wpm()

    def _handle_normal_input(self, text: str) -> None:
        sanitized = _DISALLOWED_CHARS.sub('', text.strip().lower())[:MAX_INPUT_LENGTH]
        self.typing.current_input = sanitized
        if not sanitized:
            return

        match = self.word_source.partial_match(sanitized, self.target_word)
        if match.is_complete:
            self.complete_word()
        else:
            self.update_player_speed(match)

    def _handle_frenzy_input(self, text: str) -> None:
        result = self.frenzy.handle_input(text)
        self.typing.current_input = self.frenzy.state.current_input

        if result is not None:
            self._apply_frenzy_result(result)
        elif self.frenzy.active:
            accuracy = self.frenzy.input_accuracy()
            if accuracy > 0.7:
                self.player.speed = 0.03
            elif accuracy > 0.3:
                self.player.speed = 0.01
            else:
                self.player.speed = -0.01

        self._dispatch(self.frenzy.take_events())

    def _handle_boss_input(self, text: str) -> None:
        text = text.lower()
        self.typing.current_input = text
        phase = self.boss.state.phase

        if phase == BossPhase.SPECIAL_WARNING:
            if self.boss.validate_special_chant(text).is_complete:
                result = self.boss.attempt_special_defense(text)
                if result.success:
                    self.run.score += result.score
                    self.typing.current_input = ''
        elif phase == BossPhase.ATTACK_WARNING and \
                self.boss.validate_defense_input(text).is_complete:
            result = self.boss.attempt_defense(text)
            if result.success:
                self.run.score += result.score
                self.typing.current_input = ''
        elif phase in (BossPhase.COMBAT, BossPhase.ATTACK_WARNING):
            progress = self.boss.validate_limb_input(text)
            if progress.is_complete and progress.limb is not None:
                self._destroy_limb(text)

        self._dispatch(self.boss.take_events())

    def submit(self) -> None:
        """Space/Enter: explicit submission in boss and frenzy modes."""
        if self.phase != PHASE_PLAYING:
            return

        if self.boss.in_combat():
            word = self.typing.current_input.strip()
            if not word:
                return
            if self.boss.state.phase == BossPhase.SPECIAL_WARNING:
                result = self.boss.attempt_special_defense(word)
                if result.success:
                    self.run.score += result.score
                    self.typing.current_input = ''
            else:
                result = self.boss.attempt_defense(word)
                if result.success:
                    self.run.score += result.score
                else:
                    self._destroy_limb(word)
                self.typing.current_input = ''
            self._dispatch(self.boss.take_events())

        elif self.frenzy.active:
            result = self.frenzy.advance_word()
            if result is not None:
                self._apply_frenzy_result(result)
            self._dispatch(self.frenzy.take_events())

    def switch_branch(self) -> None:
        if self.phase != PHASE_PLAYING or self.sub_mode_engaged:
            return
        self.active_branch = 2 if self.active_branch == 1 else 1
        self.typing.current_input = ''

    def _destroy_limb(self, word: str) -> None:
        hit = self.boss.attempt_destroy_limb(word)
        if not hit.success:
            return
        self.run.score += 100
        if hit.countered:
            self.run.score += 50
        self.typing.current_input = ''

    def _apply_frenzy_result(self, result) -> None:
        self.run.score += result.score + result.bonus
        self.run.words_completed += 1
        self.typing.current_input = ''

    # -------------------------------------------------------------------------
    # Normal word flow
    # -------------------------------------------------------------------------

    def complete_word(self) -> None:
        was_perfect = not self.typing.had_error_during_word

        if was_perfect:
            self.fever.on_perfect_word()
        self.fever.on_combo_increase(self.run.combo + 1)
        self.fever.on_wpm_burst(self.typing.words_per_minute, self.average_wpm())

        drop = self.pair.power_up1 if self.active_branch == 1 else self.pair.power_up2
        if drop is not None:
            self.power_ups.activate_power_up(drop.type, drop.rarity)
            self._events.append(GameEvent('power_up_activated', {
                'type': drop.type.value, 'rarity': drop.rarity.value,
            }))

        multiplier = self.fever.get_score_multiplier()
        score_power_up = self.power_ups.get_power_up(PowerUpType.MULTIPLIER)
        if score_power_up is not None and (score_power_up.words_left or 0) > 0:
            multiplier *= score_power_up.multiplier
            self.power_ups.consume_multiplier_use()

        gained = (10 + self.run.combo * 2) * multiplier
        self.run.score += gained
        self.run.combo += 1
        self.run.words_completed += 1

        completed = self.target_word
        self.typing.current_input = ''
        self.typing.had_error_during_word = False
        logger.debug(
            "Word completed",
            extra={'word': completed, 'gained': gained, 'combo': self.run.combo},
        )
        self._events.append(GameEvent('word_completed', {
            'word': completed, 'score': gained, 'perfect': was_perfect,
        }))

        # Boss wins a tie with frenzy
        if self.boss.register_word():
            self._start_boss()
            return
        if self.frenzy.register_word():
            self._start_frenzy()
            return

        boost = 0.3 + self.run.combo * 0.05
        speed_power_up = self.power_ups.get_power_up(PowerUpType.SPEED)
        if speed_power_up is not None:
            boost *= speed_power_up.multiplier
        self.player.speed = boost

        self.update_difficulty()
        self.pair = self.word_source.next_word_pair(self.run.score)

    def update_player_speed(self, match) -> None:
        if match.has_error:
            self.typing.had_error_during_word = True
            self.fever.on_typing_error()

            # Shield and laser focus turn the mistake into a small step forward
            if self.power_ups.is_active(PowerUpType.SHIELD):
                self.player.speed = 0.05
                return
            if self.power_ups.is_active(PowerUpType.LASER_FOCUS):
                self.player.speed = 0.08
                return

            self.player.speed = -0.04
            self.run.combo = 0
        else:
            progress = match.correct_prefix_len / match.target_length
            self.player.speed = 0.05 + progress * 0.15
            speed_power_up = self.power_ups.get_power_up(PowerUpType.SPEED)
            if speed_power_up is not None:
                self.player.speed *= speed_power_up.multiplier

    def average_wpm(self) -> float:
        history = self.typing.wpm_history
        if not history:
            return self.typing.words_per_minute
        return sum(history) / len(history)

    def update_wpm(self) -> None:
        if self.typing.start_time is None:
            return
        minutes = (self.clock.now() - self.typing.start_time) / 60000.0
        if minutes <= 0:
            return

        words = self.run.words_completed + len(self.typing.current_input) / 5
        self.typing.words_per_minute = round_half_up(words / minutes)

        if self.typing.words_per_minute > 0:
            self.typing.wpm_history.append(self.typing.words_per_minute)
            del self.typing.wpm_history[:-WPM_HISTORY_SIZE]

        self.run.best_wpm = max(self.run.best_wpm, self.typing.words_per_minute)

    def update_difficulty(self) -> None:
        wpm_factor = min(self.typing.words_per_minute / 60, 1)
        score_factor = min(self.run.score / 200, 1)
        level = (wpm_factor + score_factor) / 2

        bg = self.background
        bg.scroll_speed = bg.base_speed + level * (bg.max_speed - bg.base_speed)

    # -------------------------------------------------------------------------
    # Sub-mode hand-off
    # -------------------------------------------------------------------------

    def _enter_sub_mode(self) -> None:
        self.player.position = SUB_MODE_ENTRY_POSITION
        self.player.speed = 0
        self.background.scroll_speed = 0
        self.background.resume_at = None
        self.typing.current_input = ''

    def _start_boss(self) -> None:
        if self.frenzy.is_engaged():
            raise RuntimeError("Cannot start a boss battle during frenzy")
        self._enter_sub_mode()
        self.boss.start()
        self._dispatch(self.boss.take_events())

    def _start_frenzy(self) -> None:
        if self.boss.is_engaged():
            raise RuntimeError("Cannot start frenzy during a boss battle")
        self._enter_sub_mode()
        self.frenzy.start()
        self._dispatch(self.frenzy.take_events())

    def _exit_sub_mode(self) -> None:
        self.player.position = max(self.player.position, SUB_MODE_EXIT_POSITION)
        self.player.speed = 0
        self.typing.current_input = ''
        self.typing.had_error_during_word = False
        self.active_branch = 1
        self.pair = self.word_source.next_word_pair(self.run.score)

        # Give the player a moment to read the new words
        self.background.scroll_speed = 0
        self.background.resume_at = self.clock.now() + self.settings.scroll_resume_delay_ms

    def _dispatch(self, events: List[GameEvent]) -> None:
        """React to sub-mode events, then pass them on to the UI."""
        for event in events:
            self._events.append(event)

            if event.type == 'frenzy_started':
                self.fever.trigger_fever_rush()
            elif event.type == 'frenzy_exit':
                self._exit_sub_mode()
            elif event.type in ('boss_victory', 'boss_timeout', 'boss_defeat'):
                self.run.score += event.data['score'].total_score
            elif event.type == 'boss_exit':
                if event.data['outcome'] == 'defeat':
                    self.game_over('boss_defeat')
                else:
                    self._exit_sub_mode()

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def tick(self, dt_ms: float) -> None:
        """Advance one frame: effects, fever, sub-modes, physics, then failure checks."""
        if self.phase != PHASE_PLAYING:
            return

        self.power_ups.update_power_ups()

        is_typing = len(self.typing.current_input) > 0
        position = self.player.position
        # Frenzy, countdown included, pauses the meter. Boss fights do not.
        if not self.frenzy.is_engaged():
            self.fever.apply_decay(dt_ms, position, is_typing)
            self.fever.update_fever_rush()
            if is_typing:
                self.fever.on_danger_zone_typing(position, dt_ms)
        else:
            self.fever.update_fever_rush()
        self.fever.on_right_wall_touch(position)

        self._dispatch(self.frenzy.update())
        if self.phase != PHASE_PLAYING:
            return
        self._dispatch(self.boss.update())
        if self.phase != PHASE_PLAYING:
            return

        self._update_physics(dt_ms)

        if self.player.position <= self.settings.game_over_position and not self.sub_mode_engaged:
            self.game_over('danger_wall')

    def _update_physics(self, dt_ms: float) -> None:
        bg = self.background
        player = self.player

        if bg.resume_at is not None and self.clock.now() >= bg.resume_at:
            bg.scroll_speed = bg.base_speed
            bg.resume_at = None

        effective_scroll = bg.scroll_speed
        time_warp = self.power_ups.get_power_up(PowerUpType.TIME_WARP)
        if time_warp is not None:
            effective_scroll *= time_warp.multiplier
        if self.power_ups.is_active(PowerUpType.FREEZE):
            effective_scroll = 0

        bg.offset += effective_scroll * dt_ms * TICK_SCALE

        in_countdown = (self.frenzy.state.phase == FrenzyPhase.COUNTDOWN
                        or self.boss.state.phase == BossPhase.COUNTDOWN)
        if in_countdown:
            player.position = max(player.position, COUNTDOWN_HOLD_POSITION)
            player.speed = 0
        else:
            net = (player.speed - effective_scroll * SCROLL_PRESSURE) * dt_ms * TICK_SCALE
            player.position = max(0.0, min(1.0, player.position + net))
            player.speed *= SPEED_DECAY

        in_safe_zone = player.position >= SAFE_WALL_POSITION
        if in_safe_zone:
            player.safe_wall_contact_time = min(
                MAX_SAFE_WALL_CONTACT, player.safe_wall_contact_time + dt_ms * TICK_SCALE
            )
        else:
            player.safe_wall_contact_time = max(
                0.0, player.safe_wall_contact_time - dt_ms * TICK_SCALE * 2
            )
        player.was_in_safe_zone = in_safe_zone

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            phase=self.phase,
            fever=self._fever_snapshot(),
            power_ups=tuple(
                PowerUpSnapshot(
                    type=pu.type.value,
                    rarity=pu.rarity.value,
                    remaining=self.power_ups.get_time_remaining(pu.type),
                    usage_based=pu.words_left is not None,
                )
                for pu in self.power_ups.active_power_ups
            ),
            frenzy=self._frenzy_snapshot(),
            boss=self._boss_snapshot(),
            run=RunSnapshot(
                score=int(self.run.score),
                combo=self.run.combo,
                wpm=self.typing.words_per_minute,
                position_percent=self.player.position * 100,
                words_completed=self.run.words_completed,
                word1=self.pair.word1 if self.pair else '',
                word2=self.pair.word2 if self.pair else '',
                active_branch=self.active_branch,
                current_input=self.typing.current_input,
                power_up1=self._drop_name(1),
                power_up2=self._drop_name(2),
            ),
        )

    def _drop_name(self, branch: int) -> str:
        if self.pair is None:
            return ''
        drop = self.pair.power_up1 if branch == 1 else self.pair.power_up2
        return drop.type.value if drop else ''

    def _fever_snapshot(self) -> FeverSnapshot:
        return FeverSnapshot(
            heat_percent=self.fever.get_heat_percentage(),
            level=self.fever.state.level,
            level_name=self.fever.get_level_name(),
            multiplier=self.fever.get_score_multiplier(),
            rush_active=self.fever.state.fever_rush_active,
            rush_time_left=self.fever.get_fever_rush_time_left(),
        )

    def _frenzy_snapshot(self) -> FrenzySnapshot:
        state = self.frenzy.state
        return FrenzySnapshot(
            active=self.frenzy.is_engaged(),
            phase=state.phase.name.lower(),
            word_index=state.current_word_index,
            total_words=len(state.sentence_words),
            time_remaining_seconds=math.ceil(state.time_remaining / 1000),
            current_wpm=state.current_wpm,
            accuracy_percent=round_half_up(state.average_accuracy * 100),
            current_word=self.frenzy.current_word,
            sentence_words=tuple(state.sentence_words),
        )

    def _boss_snapshot(self) -> BossSnapshot:
        state = self.boss.state
        is_special = state.phase == BossPhase.SPECIAL_WARNING
        warning_active = is_special or state.phase == BossPhase.ATTACK_WARNING

        countdown = 0.0
        if warning_active:
            window = SPECIAL_WARNING_MS if is_special else ATTACK_WARNING_MS
            countdown = max(0.0, window - (self.clock.now() - state.warning_start))

        if is_special:
            defense_word = state.boss.special_move_chant
        else:
            defense_word = state.current_defense_word

        return BossSnapshot(
            active=self.boss.is_engaged(),
            phase=state.phase.name.lower(),
            name=state.boss.name if state.boss else '',
            hearts=self.boss.hearts,
            hp=state.current_hp,
            limbs=tuple(
                LimbSnapshot(limb.id, limb.word, limb.destroyed, limb.angle)
                for limb in state.limbs
            ),
            time_remaining_seconds=math.ceil(state.time_remaining / 1000),
            attack_warning=AttackWarningSnapshot(
                active=warning_active,
                countdown=countdown,
                defense_word=defense_word,
                is_special=is_special,
            ),
        )

    def drain_events(self) -> List[GameEvent]:
        events, self._events = self._events, []
        return events
