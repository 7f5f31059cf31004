"""
State Records
==============
All session state is held in plain dataclasses with no behavior.
Systems own one record each and mutate it in place.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from enum import Enum, auto


# =============================================================================
# EVENTS
# =============================================================================

@dataclass
class GameEvent:
    """Something a system wants the UI layer to react to."""
    type: str
    data: dict = field(default_factory=dict)


# =============================================================================
# FEVER
# =============================================================================

@dataclass
class FeverState:
    """Heat meter and fever rush bookkeeping."""
    heat: float = 0.0
    level: int = 0
    fever_rush_active: bool = False
    fever_rush_start_time: float = 0.0
    perfect_word_streak: int = 0


# =============================================================================
# POWER-UPS
# =============================================================================

class PowerUpType(str, Enum):
    SPEED = 'speed'
    TIME_WARP = 'timeWarp'
    SHIELD = 'shield'
    MULTIPLIER = 'multiplier'
    LASER_FOCUS = 'laserFocus'
    FREEZE = 'freeze'


class Rarity(str, Enum):
    COMMON = 'common'
    RARE = 'rare'
    EPIC = 'epic'


@dataclass
class PowerUp:
    """An active power-up instance."""
    type: PowerUpType
    rarity: Rarity
    start_time: float
    duration: float  # ms
    multiplier: float
    words_left: Optional[int] = None  # Usage-based expiry when set


@dataclass
class PowerUpDrop:
    """A power-up attached to a word slot, activated when the word is typed."""
    type: PowerUpType
    rarity: Rarity = Rarity.COMMON


# =============================================================================
# WORD SOURCE RECORDS
# =============================================================================

@dataclass
class WordPair:
    """The two branch words offered in normal play."""
    word1: str
    word2: str
    power_up1: Optional[PowerUpDrop] = None
    power_up2: Optional[PowerUpDrop] = None


@dataclass
class FrenzySentence:
    """A themed sentence for frenzy mode."""
    words: List[str]
    theme: str = ''

    @property
    def sentence(self) -> str:
        return ' '.join(self.words)


@dataclass
class PartialMatch:
    """Prefix comparison of typed input against a target word."""
    correct_prefix_len: int
    target_length: int
    is_complete: bool
    has_error: bool


# =============================================================================
# FRENZY
# =============================================================================

class FrenzyPhase(Enum):
    INACTIVE = auto()
    COUNTDOWN = auto()
    ACTIVE = auto()
    COMPLETED = auto()
    TIMED_OUT = auto()


@dataclass
class FrenzyWordResult:
    """Outcome of one submitted frenzy word."""
    word: str
    input: str
    accuracy: float
    score: int
    sentence_complete: bool = False
    bonus: int = 0  # Completion bonus, only on the final word


@dataclass
class FrenzyState:
    """Timed sentence-typing mode."""
    phase: FrenzyPhase = FrenzyPhase.INACTIVE
    theme: str = ''
    sentence_words: List[str] = field(default_factory=list)
    current_word_index: int = 0
    current_input: str = ''
    completed_words: List[FrenzyWordResult] = field(default_factory=list)

    # Duration-based timer: penalties/bonuses move the deadline
    duration: float = 30000.0
    time_remaining: float = 30000.0
    start_time: Optional[float] = None
    countdown_start: Optional[float] = None
    resolved_at: Optional[float] = None
    last_typo_time: Optional[float] = None
    had_error: bool = False

    # Performance tracking
    total_characters_typed: int = 0
    correct_characters_typed: int = 0
    total_words: int = 0
    perfect_words: int = 0
    wpm_history: List[int] = field(default_factory=list)
    current_wpm: int = 0
    average_accuracy: float = 0.0
    bonus_awarded: int = 0


# =============================================================================
# BOSS
# =============================================================================

class BossPhase(Enum):
    IDLE = auto()
    COUNTDOWN = auto()
    COMBAT = auto()
    ATTACK_WARNING = auto()
    SPECIAL_WARNING = auto()
    VICTORY = auto()
    TIMEOUT = auto()
    DEFEAT = auto()


@dataclass(frozen=True)
class BossType:
    """Fixed boss archetype definition."""
    key: str
    name: str
    limb_count: int
    theme: str
    description: str
    attack_name: str
    attack_damage: int
    special_move_name: str
    special_move_chant: str
    special_move_damage: int


@dataclass
class Limb:
    """A destructible word target on the boss."""
    id: int
    word: str
    destroyed: bool = False
    angle: float = 0.0  # Radians, evenly spaced around the boss


@dataclass
class BossScore:
    """Breakdown of the end-of-fight score."""
    limb_score: int
    accuracy: float
    accuracy_multiplier: float
    time_bonus: int
    completion_bonus: int
    perfect_bonus: int
    speed_bonus: int
    defense_bonus: int
    perfect_defense_bonus: int
    total_score: int
    limbs_destroyed: int
    total_limbs: int
    time_taken: int
    perfect_boss: bool
    no_damage_taken: bool
    attacks_blocked: int
    total_attacks: int


@dataclass
class BossState:
    """Boss battle combat state."""
    phase: BossPhase = BossPhase.IDLE
    boss: Optional[BossType] = None
    limbs: List[Limb] = field(default_factory=list)
    destroyed_limbs: int = 0

    # Timer
    duration: float = 45000.0
    time_remaining: float = 45000.0
    start_time: Optional[float] = None
    countdown_start: Optional[float] = None
    resolved_at: Optional[float] = None

    # HP
    current_hp: int = 100
    no_damage_taken: bool = True

    # Attack cycle
    last_attack_time: Optional[float] = None
    warning_start: Optional[float] = None
    attacking_limb: Optional[Limb] = None
    current_defense_word: str = ''

    # Special move
    special_move_triggered: bool = False
    special_move_blocked: bool = False

    # Stats
    total_attacks: int = 0
    attacks_blocked: int = 0
    damage_dealt: int = 0
    total_attempts: int = 0
    successful_hits: int = 0
    missed_attempts: int = 0
    perfect_boss: bool = True
    final_score: Optional[BossScore] = None


@dataclass
class LimbHit:
    """Outcome of a limb destruction attempt."""
    success: bool
    limb: Optional[Limb] = None
    all_destroyed: bool = False
    countered: bool = False


@dataclass
class DefenseResult:
    """Outcome of a defense word or chant attempt."""
    success: bool
    score: int = 0
    reason: str = ''


@dataclass
class InputProgress:
    """Live prefix validation of boss-mode input."""
    valid: bool
    progress: int
    total_length: int
    is_complete: bool
    has_error: bool = False
    limb: Optional[Limb] = None


# =============================================================================
# RUN / PLAYER
# =============================================================================

@dataclass
class RunState:
    """Score and progress for the current run."""
    score: float = 0.0
    combo: int = 0
    words_completed: int = 0
    best_wpm: int = 0


@dataclass
class PlayerState:
    """Avatar position between the danger wall (0) and the safe wall (1)."""
    position: float = 0.5
    speed: float = 0.0
    safe_wall_contact_time: float = 0.0
    was_in_safe_zone: bool = False


@dataclass
class BackgroundState:
    """Danger wall scroll."""
    offset: float = 0.0
    scroll_speed: float = 1.5
    base_speed: float = 1.5
    max_speed: float = 3.5
    resume_at: Optional[float] = None  # Scroll restarts at this time after a sub-mode


@dataclass
class TypingState:
    """Normal-mode typing progress."""
    current_input: str = ''
    words_per_minute: int = 0
    start_time: Optional[float] = None
    wpm_history: List[int] = field(default_factory=list)
    had_error_during_word: bool = False


@dataclass
class GameOverStats:
    """Final numbers for the game over screen."""
    score: int
    best_wpm: int
    words_completed: int
    reason: str


# =============================================================================
# SNAPSHOTS (read-only, handed to the UI each tick)
# =============================================================================

@dataclass(frozen=True)
class FeverSnapshot:
    heat_percent: float
    level: int
    level_name: str
    multiplier: float
    rush_active: bool
    rush_time_left: float


@dataclass(frozen=True)
class PowerUpSnapshot:
    type: str
    rarity: str
    remaining: float  # ms, or words left for usage-based power-ups
    usage_based: bool


@dataclass(frozen=True)
class FrenzySnapshot:
    active: bool
    phase: str
    word_index: int
    total_words: int
    time_remaining_seconds: int
    current_wpm: int
    accuracy_percent: int
    current_word: str
    sentence_words: tuple


@dataclass(frozen=True)
class LimbSnapshot:
    id: int
    word: str
    destroyed: bool
    angle: float


@dataclass(frozen=True)
class AttackWarningSnapshot:
    active: bool
    countdown: float  # ms left in the defense window
    defense_word: str
    is_special: bool


@dataclass(frozen=True)
class BossSnapshot:
    active: bool
    phase: str
    name: str
    hearts: int
    hp: int
    limbs: tuple
    time_remaining_seconds: int
    attack_warning: AttackWarningSnapshot


@dataclass(frozen=True)
class RunSnapshot:
    score: int
    combo: int
    wpm: int
    position_percent: float
    words_completed: int
    word1: str
    word2: str
    active_branch: int
    current_input: str
    power_up1: str = ''  # Power-up type carried by each branch word, '' for none
    power_up2: str = ''


@dataclass(frozen=True)
class GameSnapshot:
    phase: str
    fever: FeverSnapshot
    power_ups: tuple
    frenzy: FrenzySnapshot
    boss: BossSnapshot
    run: RunSnapshot
