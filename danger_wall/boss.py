"""
Boss Battles
=============
Limb destruction, timed attacks with defense windows, the one-shot
special move, hearts, and end-of-fight scoring.
"""

import logging
import math
import random
from typing import Dict, List, Optional

from .components import (
    BossPhase, BossScore, BossState, BossType, DefenseResult, GameEvent,
    InputProgress, Limb, LimbHit
)
from .config import GameSettings

logger = logging.getLogger(__name__)


# =============================================================================
# BOSS ARCHETYPES
# =============================================================================

BOSS_TYPES: Dict[str, BossType] = {
    'glitchSpider': BossType(
        key='glitchSpider',
        name='GLITCH SPIDER',
        limb_count=6,
        theme='tech',
        description='Six corrupted legs of pure malware',
        attack_name='Web Shot',
        attack_damage=20,
        special_move_name='CORRUPTED WEB PRISON',
        special_move_chant='break the protocol and purge the virus',
        special_move_damage=60,
    ),
    'codeHydra': BossType(
        key='codeHydra',
        name='CODE HYDRA',
        limb_count=5,
        theme='programming',
        description='Five heads speaking in forbidden syntax',
        attack_name='Syntax Flame',
        attack_damage=20,
        special_move_name='INFINITE RECURSION',
        special_move_chant='return to base case and escape the loop',
        special_move_damage=60,
    ),
    'syntaxGolem': BossType(
        key='syntaxGolem',
        name='SYNTAX GOLEM',
        limb_count=4,
        theme='errors',
        description='Four arms of runtime destruction',
        attack_name='Error Punch',
        attack_damage=20,
        special_move_name='FATAL EXCEPTION',
        special_move_chant='catch the error and handle gracefully',
        special_move_damage=60,
    ),
    'bugKraken': BossType(
        key='bugKraken',
        name='BUG KRAKEN',
        limb_count=8,
        theme='debugging',
        description='Eight tentacles of unresolved issues',
        attack_name='Tentacle Slam',
        attack_damage=20,
        special_move_name='MEMORY LEAK TSUNAMI',
        special_move_chant='garbage collect and free the heap',
        special_move_damage=60,
    ),
}

DEFENSE_WORDS = [
    'defend', 'block', 'dodge', 'guard', 'parry',
    'evade', 'shield', 'counter', 'resist', 'duck',
]

MAX_HP = 100
HP_PER_HEART = 20

ATTACK_WARNING_MS = 2500.0
SPECIAL_WARNING_MS = 12000.0
TYPO_PENALTY_MS = 3000.0
MIN_TIME_MS = 5000.0

# (minimum active limbs, ms between attacks); fewer limbs attack faster
ATTACK_INTERVALS = [(6, 8000.0), (4, 6000.0), (2, 4000.0)]
DESPERATE_INTERVAL_MS = 2000.0

LIMB_SCORE = 100
BLOCK_SCORE = 50
COUNTER_SCORE = 50
SPECIAL_BLOCK_SCORE = 100

COMBAT_PHASES = (BossPhase.COMBAT, BossPhase.ATTACK_WARNING, BossPhase.SPECIAL_WARNING)
RESOLVED_PHASES = (BossPhase.VICTORY, BossPhase.TIMEOUT, BossPhase.DEFEAT)


class BossSystem:
    """
    Boss fight state machine:

        IDLE -> COUNTDOWN -> COMBAT <-> ATTACK_WARNING / SPECIAL_WARNING
             -> VICTORY | TIMEOUT | DEFEAT -> IDLE

    Everything is polled from update(); input methods only flip state.
    """

    def __init__(self, clock, word_source, settings: Optional[GameSettings] = None,
                 rng: Optional[random.Random] = None):
        self.clock = clock
        self.word_source = word_source
        self.settings = settings or GameSettings()
        self.rng = rng or random.Random()
        self.words_since_boss = 0
        self.state = self._new_state()
        self._events: List[GameEvent] = []

    def _new_state(self) -> BossState:
        return BossState(
            duration=self.settings.boss_duration_ms,
            time_remaining=self.settings.boss_duration_ms,
        )

    # -------------------------------------------------------------------------
    # Trigger / setup
    # -------------------------------------------------------------------------

    def register_word(self) -> bool:
        """Count a completed normal word. True when a boss is due."""
        self.words_since_boss += 1
        return self.words_since_boss >= self.settings.boss_trigger_interval

    def is_engaged(self) -> bool:
        return self.state.phase != BossPhase.IDLE

    def in_combat(self) -> bool:
        return self.state.phase in COMBAT_PHASES

    def start(self, boss_key: Optional[str] = None) -> BossType:
        """Pick an archetype, deal out limb words, and begin the countdown."""
        if self.is_engaged():
            raise RuntimeError("Boss battle already in progress")

        if boss_key is None:
            boss_key = self.rng.choice(list(BOSS_TYPES))
        boss = BOSS_TYPES[boss_key]

        words = self.word_source.boss_word_pool(boss.theme, boss.limb_count)
        if len(words) < boss.limb_count:
            raise ValueError(
                f"Word source gave {len(words)} words for {boss.limb_count} limbs"
            )

        self.words_since_boss = 0
        self.state = self._new_state()
        self.state.boss = boss
        self.state.limbs = [
            Limb(id=i, word=words[i], angle=2 * math.pi * i / boss.limb_count)
            for i in range(boss.limb_count)
        ]

        now = self.clock.now()
        logger.info("Boss encounter", extra={'boss': boss.name, 'theme': boss.theme})

        if self.settings.boss_countdown_ms > 0:
            self.state.phase = BossPhase.COUNTDOWN
            self.state.countdown_start = now
            self._events.append(GameEvent('boss_countdown', {
                'name': boss.name,
                'description': boss.description,
                'duration_ms': self.settings.boss_countdown_ms,
            }))
        else:
            self._begin_combat(now)
        return boss

    def _begin_combat(self, now: float) -> None:
        self.state.phase = BossPhase.COMBAT
        self.state.start_time = now
        self.state.last_attack_time = now
        self.state.time_remaining = self.state.duration
        self._events.append(GameEvent('boss_combat_started', {
            'name': self.state.boss.name,
            'limbs': [limb.word for limb in self.state.limbs],
        }))

    def active_limbs(self) -> List[Limb]:
        return [limb for limb in self.state.limbs if not limb.destroyed]

    # -------------------------------------------------------------------------
    # Timer
    # -------------------------------------------------------------------------

    def update_timer(self) -> bool:
        """Recompute time left. Returns False once the deadline has passed."""
        if not self.in_combat() or self.state.start_time is None:
            return True
        elapsed = self.clock.now() - self.state.start_time
        self.state.time_remaining = max(0.0, self.state.duration - elapsed)
        return self.state.time_remaining > 0

    def _apply_typo_penalty(self) -> None:
        """Take time off the clock by moving the deadline, never below the floor."""
        self.update_timer()
        remaining = self.state.time_remaining
        reduced = min(remaining, max(MIN_TIME_MS, remaining - TYPO_PENALTY_MS))
        self.state.duration -= remaining - reduced
        self.state.time_remaining = reduced

    # -------------------------------------------------------------------------
    # Player actions
    # -------------------------------------------------------------------------

    def attempt_destroy_limb(self, word: str) -> LimbHit:
        if not self.in_combat():
            return LimbHit(success=False)

        self.state.total_attempts += 1
        typed = word.lower().strip()

        for limb in self.active_limbs():
            if limb.word.lower() == typed:
                break
        else:
            self.state.perfect_boss = False
            self.state.missed_attempts += 1
            self._apply_typo_penalty()
            logger.debug("Boss limb miss", extra={'typed': typed})
            return LimbHit(success=False)

        limb.destroyed = True
        self.state.destroyed_limbs += 1
        self.state.successful_hits += 1

        countered = (
            self.state.phase == BossPhase.ATTACK_WARNING
            and self.state.attacking_limb is not None
            and self.state.attacking_limb.id == limb.id
        )
        if countered:
            self._cancel_warning()

        all_destroyed = self.state.destroyed_limbs == len(self.state.limbs)
        self._events.append(GameEvent('limb_destroyed', {
            'limb_id': limb.id,
            'word': limb.word,
            'countered': countered,
        }))
        if all_destroyed:
            self._resolve(BossPhase.VICTORY)

        return LimbHit(success=True, limb=limb, all_destroyed=all_destroyed, countered=countered)

    def attempt_defense(self, word: str) -> DefenseResult:
        if self.state.phase != BossPhase.ATTACK_WARNING:
            return DefenseResult(success=False, reason='no_attack')

        if word.lower().strip() != self.state.current_defense_word:
            return DefenseResult(success=False, reason='wrong_word')

        self.state.attacks_blocked += 1
        self._cancel_warning()
        self._events.append(GameEvent('attack_blocked', {'score': BLOCK_SCORE}))
        return DefenseResult(success=True, score=BLOCK_SCORE)

    def attempt_special_defense(self, chant: str) -> DefenseResult:
        if self.state.phase != BossPhase.SPECIAL_WARNING:
            return DefenseResult(success=False, reason='no_special_move')

        if chant.lower().strip() != self.state.boss.special_move_chant.lower():
            return DefenseResult(success=False, reason='wrong_chant')

        self.state.attacks_blocked += 1
        self.state.special_move_blocked = True
        self._cancel_warning()
        logger.info("Special move blocked", extra={'boss': self.state.boss.name})
        self._events.append(GameEvent('special_move_blocked', {'score': SPECIAL_BLOCK_SCORE}))
        return DefenseResult(success=True, score=SPECIAL_BLOCK_SCORE)

    def _cancel_warning(self) -> None:
        self.state.phase = BossPhase.COMBAT
        self.state.attacking_limb = None
        self.state.current_defense_word = ''
        self.state.warning_start = None
        self.state.last_attack_time = self.clock.now()

    # -------------------------------------------------------------------------
    # Live validation
    # -------------------------------------------------------------------------

    def _progress(self, text: str, target: str, limb: Optional[Limb] = None) -> InputProgress:
        match = self.word_source.partial_match(text, target)
        return InputProgress(
            valid=len(text) > 0 and not match.has_error,
            progress=match.correct_prefix_len,
            total_length=match.target_length,
            is_complete=match.is_complete,
            has_error=match.has_error,
            limb=limb,
        )

    def validate_defense_input(self, text: str) -> InputProgress:
        if self.state.phase != BossPhase.ATTACK_WARNING or not self.state.current_defense_word:
            return InputProgress(valid=False, progress=0, total_length=0, is_complete=False)
        return self._progress(text, self.state.current_defense_word)

    def validate_limb_input(self, text: str) -> InputProgress:
        """Progress against whichever active limb the input matches furthest."""
        best = None
        best_progress = 0
        if self.in_combat():
            for limb in self.active_limbs():
                progress = self.word_source.partial_match(text, limb.word).correct_prefix_len
                if progress > best_progress:
                    best, best_progress = limb, progress

        if best is None:
            return InputProgress(
                valid=False, progress=0, total_length=0, is_complete=False,
                has_error=len(text) > 0,
            )
        return self._progress(text, best.word, best)

    def validate_special_chant(self, text: str) -> InputProgress:
        if self.state.phase != BossPhase.SPECIAL_WARNING:
            return InputProgress(valid=False, progress=0, total_length=0, is_complete=False)
        return self._progress(text, self.state.boss.special_move_chant)

    # -------------------------------------------------------------------------
    # Attack cycle
    # -------------------------------------------------------------------------

    def get_attack_interval(self) -> float:
        count = len(self.active_limbs())
        for minimum, interval in ATTACK_INTERVALS:
            if count >= minimum:
                return interval
        return DESPERATE_INTERVAL_MS

    def should_trigger_special_move(self) -> bool:
        return (
            self.in_combat()
            and not self.state.special_move_triggered
            and len(self.active_limbs()) == 1
        )

    def update_attack_system(self) -> None:
        if not self.in_combat():
            return

        now = self.clock.now()

        # The final-limb special replaces any normal attack still pending
        if self.should_trigger_special_move():
            self._start_special_move(now)
            return

        if self.state.phase in (BossPhase.ATTACK_WARNING, BossPhase.SPECIAL_WARNING):
            window = (SPECIAL_WARNING_MS if self.state.phase == BossPhase.SPECIAL_WARNING
                      else ATTACK_WARNING_MS)
            if now - self.state.warning_start >= window:
                self.execute_attack()
            return

        if now - self.state.last_attack_time >= self.get_attack_interval():
            self.start_attack_warning()

    def start_attack_warning(self) -> Optional[Limb]:
        active = self.active_limbs()
        if not active:
            return None

        limb = self.rng.choice(active)
        self.state.phase = BossPhase.ATTACK_WARNING
        self.state.attacking_limb = limb
        self.state.current_defense_word = self.rng.choice(DEFENSE_WORDS)
        self.state.warning_start = self.clock.now()
        self.state.total_attacks += 1

        self._events.append(GameEvent('attack_warning', {
            'limb_id': limb.id,
            'attack_name': self.state.boss.attack_name,
            'defense_word': self.state.current_defense_word,
            'time_ms': ATTACK_WARNING_MS,
        }))
        return limb

    def _start_special_move(self, now: float) -> None:
        boss = self.state.boss
        self.state.phase = BossPhase.SPECIAL_WARNING
        self.state.special_move_triggered = True
        self.state.attacking_limb = None
        self.state.current_defense_word = ''
        self.state.warning_start = now
        self.state.total_attacks += 1

        logger.info("Special move", extra={'boss': boss.name, 'move': boss.special_move_name})
        self._events.append(GameEvent('special_move_warning', {
            'move_name': boss.special_move_name,
            'chant': boss.special_move_chant,
            'time_ms': SPECIAL_WARNING_MS,
        }))

    def execute_attack(self) -> int:
        """The defense window ran out: land the hit. Returns damage dealt."""
        boss = self.state.boss
        is_special = self.state.phase == BossPhase.SPECIAL_WARNING
        damage = boss.special_move_damage if is_special else boss.attack_damage
        limb_id = self.state.attacking_limb.id if self.state.attacking_limb else None

        self._cancel_warning()
        self.take_damage(damage)

        self._events.append(GameEvent('attack_hit', {
            'attack_name': boss.special_move_name if is_special else boss.attack_name,
            'is_special': is_special,
            'limb_id': limb_id,
            'damage': damage,
            'hp': self.state.current_hp,
            'hearts': self.hearts,
        }))
        return damage

    # -------------------------------------------------------------------------
    # HP
    # -------------------------------------------------------------------------

    def take_damage(self, amount: int) -> None:
        self.state.current_hp = max(0, self.state.current_hp - amount)
        self.state.damage_dealt += amount
        self.state.no_damage_taken = False
        self.state.perfect_boss = False
        logger.debug(
            "Player hit", extra={'damage': amount, 'hp': self.state.current_hp}
        )

    @property
    def hearts(self) -> int:
        return math.ceil(self.state.current_hp / HP_PER_HEART)

    def is_dead(self) -> bool:
        return self.state.current_hp <= 0

    # -------------------------------------------------------------------------
    # Scoring / resolution
    # -------------------------------------------------------------------------

    def calculate_score(self) -> BossScore:
        s = self.state
        total_limbs = len(s.limbs)
        cleared = total_limbs > 0 and s.destroyed_limbs == total_limbs

        limb_score = s.destroyed_limbs * LIMB_SCORE
        accuracy = s.successful_hits / s.total_attempts if s.total_attempts > 0 else 1.0
        accuracy_multiplier = accuracy ** 2
        time_bonus = int(s.time_remaining // 1000) * 10
        completion_bonus = 500 if cleared else 0
        perfect_bonus = 500 if s.perfect_boss and cleared else 0

        base_seconds = self.settings.boss_duration_ms / 1000
        time_taken = (self.settings.boss_duration_ms - s.time_remaining) / 1000
        speed_bonus = max(0, math.floor((base_seconds - time_taken) * 20)) if cleared else 0

        defense_bonus = s.attacks_blocked * BLOCK_SCORE
        perfect_defense_bonus = 500 if s.no_damage_taken and cleared else 0

        total = math.floor(
            limb_score * accuracy_multiplier
            + time_bonus
            + completion_bonus
            + perfect_bonus
            + speed_bonus
            + defense_bonus
            + perfect_defense_bonus
        )

        return BossScore(
            limb_score=limb_score,
            accuracy=accuracy,
            accuracy_multiplier=accuracy_multiplier,
            time_bonus=time_bonus,
            completion_bonus=completion_bonus,
            perfect_bonus=perfect_bonus,
            speed_bonus=speed_bonus,
            defense_bonus=defense_bonus,
            perfect_defense_bonus=perfect_defense_bonus,
            total_score=total,
            limbs_destroyed=s.destroyed_limbs,
            total_limbs=total_limbs,
            time_taken=math.floor(time_taken),
            perfect_boss=s.perfect_boss,
            no_damage_taken=s.no_damage_taken,
            attacks_blocked=s.attacks_blocked,
            total_attacks=s.total_attacks,
        )

    def _resolve(self, phase: BossPhase) -> None:
        now = self.clock.now()
        if self.state.start_time is not None:
            self.state.time_remaining = max(
                0.0, self.state.duration - (now - self.state.start_time)
            )

        self.state.phase = phase
        self.state.resolved_at = now
        self.state.attacking_limb = None
        self.state.current_defense_word = ''
        self.state.final_score = self.calculate_score()

        event_type = {
            BossPhase.VICTORY: 'boss_victory',
            BossPhase.TIMEOUT: 'boss_timeout',
            BossPhase.DEFEAT: 'boss_defeat',
        }[phase]
        logger.info(
            "Boss fight over",
            extra={
                'outcome': event_type,
                'boss': self.state.boss.name,
                'score': self.state.final_score.total_score,
            },
        )
        self._events.append(GameEvent(event_type, {'score': self.state.final_score}))

    def _display_ms(self, phase: BossPhase) -> float:
        if phase == BossPhase.VICTORY:
            return self.settings.boss_victory_display_ms
        if phase == BossPhase.TIMEOUT:
            return self.settings.boss_timeout_display_ms
        return self.settings.boss_defeat_display_ms

    def update(self) -> List[GameEvent]:
        """One tick of the fight. Defeat is checked before the timer."""
        now = self.clock.now()
        phase = self.state.phase

        if phase == BossPhase.COUNTDOWN:
            if now - self.state.countdown_start >= self.settings.boss_countdown_ms:
                self._begin_combat(now)

        elif phase in COMBAT_PHASES:
            running = self.update_timer()
            if self.is_dead():
                self._resolve(BossPhase.DEFEAT)
            elif not running:
                self._resolve(BossPhase.TIMEOUT)
            else:
                self.update_attack_system()
                if self.is_dead():
                    self._resolve(BossPhase.DEFEAT)

        elif phase in RESOLVED_PHASES:
            if now - self.state.resolved_at >= self._display_ms(phase):
                outcome = phase.name.lower()
                self.state = self._new_state()
                self._events.append(GameEvent('boss_exit', {'outcome': outcome}))

        return self.take_events()

    def take_events(self) -> List[GameEvent]:
        events, self._events = self._events, []
        return events

    def reset(self) -> None:
        self.words_since_boss = 0
        self.state = self._new_state()
        self._events = []
