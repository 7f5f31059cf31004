"""
Fever System
=============
Heat meter, fever levels, and the Fever Rush max-multiplier state.
"""

import logging
from typing import Dict

from .components import FeverState

logger = logging.getLogger(__name__)


# =============================================================================
# LEVEL TABLE
# =============================================================================

MAX_HEAT = 100.0
FEVER_RUSH_LEVEL = 4

FEVER_LEVELS: Dict[int, dict] = {
    0: {'name': 'Cool', 'multiplier': 1.0, 'threshold': 0},
    1: {'name': 'Warm', 'multiplier': 1.2, 'threshold': 25},
    2: {'name': 'Hot', 'multiplier': 1.5, 'threshold': 50},
    3: {'name': 'Blazing', 'multiplier': 2.0, 'threshold': 75},
    4: {'name': 'FEVER!', 'multiplier': 3.0, 'threshold': 100},
}

# Heat lost per second, except 'error' which is an instant amount
DECAY_RATES = {
    'normal': 5.0,
    'error': 15.0,
    'safe_zone': 2.0,  # Extra, while position > SAFE_ZONE_POSITION
    'inactivity': 10.0,
}

SAFE_ZONE_POSITION = 0.7
DANGER_ZONE_POSITION = 0.3
RIGHT_WALL_POSITION = 0.9


def level_for_heat(heat: float) -> int:
    """Highest level whose threshold the heat has reached."""
    for level in range(FEVER_RUSH_LEVEL, -1, -1):
        if heat >= FEVER_LEVELS[level]['threshold']:
            return level
    return 0


class FeverSystem:
    """Heat state machine. All timing is polled against the injected clock."""

    def __init__(self, clock, rush_duration_ms: float = 10000.0):
        self.clock = clock
        self.rush_duration_ms = rush_duration_ms
        self.state = FeverState()

    # -------------------------------------------------------------------------
    # Heat
    # -------------------------------------------------------------------------

    def add_heat(self, amount: float) -> None:
        if self.state.fever_rush_active:
            return

        self.state.heat = min(MAX_HEAT, self.state.heat + amount)
        self.update_level()

        if self.state.heat >= MAX_HEAT:
            self.trigger_fever_rush()

    def remove_heat(self, amount: float) -> None:
        self.state.heat = max(0.0, self.state.heat - amount)
        self.update_level()

    def update_level(self) -> None:
        self.state.level = level_for_heat(self.state.heat)

    def apply_decay(self, delta_ms: float, player_position: float,
                    is_typing: bool, has_error: bool = False) -> None:
        """Cool the meter down for one tick (or instantly on an error)."""
        if self.state.fever_rush_active:
            return

        if has_error:
            decay = DECAY_RATES['error']
        elif not is_typing:
            decay = DECAY_RATES['inactivity'] * delta_ms / 1000.0
        else:
            decay = DECAY_RATES['normal'] * delta_ms / 1000.0
            # Camping near the safe wall cools faster
            if player_position > SAFE_ZONE_POSITION:
                decay += DECAY_RATES['safe_zone'] * delta_ms / 1000.0

        self.remove_heat(decay)

    # -------------------------------------------------------------------------
    # Heat generation triggers
    # -------------------------------------------------------------------------

    def on_danger_zone_typing(self, player_position: float, delta_ms: float) -> None:
        if player_position < DANGER_ZONE_POSITION:
            intensity = (DANGER_ZONE_POSITION - player_position) / DANGER_ZONE_POSITION
            self.add_heat(8 * intensity * delta_ms / 1000.0)

    def on_right_wall_touch(self, player_position: float) -> None:
        if player_position > RIGHT_WALL_POSITION:
            self.add_heat(15)

    def on_perfect_word(self) -> None:
        self.state.perfect_word_streak += 1
        self.add_heat(10 + self.state.perfect_word_streak * 2)

    def on_wpm_burst(self, current_wpm: float, average_wpm: float) -> None:
        if current_wpm > average_wpm + 20:
            burst = min((current_wpm - average_wpm - 20) / 20, 2)
            self.add_heat(5 + burst * 3)

    def on_combo_increase(self, combo_count: int) -> None:
        self.add_heat(combo_count * 1.5)

    def on_typing_error(self) -> None:
        self.state.perfect_word_streak = 0
        self.apply_decay(0, 0, False, has_error=True)

    # -------------------------------------------------------------------------
    # Fever Rush
    # -------------------------------------------------------------------------

    def trigger_fever_rush(self) -> None:
        """Enter the max-multiplier state. The meter is pinned full for its duration."""
        self.state.fever_rush_active = True
        self.state.fever_rush_start_time = self.clock.now()
        self.state.heat = MAX_HEAT
        self.state.level = FEVER_RUSH_LEVEL
        self.state.perfect_word_streak = 0
        logger.info("Fever rush started", extra={'duration_ms': self.rush_duration_ms})

    def update_fever_rush(self) -> bool:
        """Poll the rush timer. Returns True while the rush is still running."""
        if not self.state.fever_rush_active:
            return False

        elapsed = self.clock.now() - self.state.fever_rush_start_time
        if elapsed >= self.rush_duration_ms:
            self.end_fever_rush()
            return False
        return True

    def end_fever_rush(self) -> None:
        self.state.fever_rush_active = False
        self.state.heat = 0.0
        self.update_level()
        logger.info("Fever rush ended")

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_score_multiplier(self) -> float:
        return FEVER_LEVELS[self.state.level]['multiplier']

    def get_level_name(self) -> str:
        return FEVER_LEVELS[self.state.level]['name']

    def get_heat_percentage(self) -> float:
        return self.state.heat / MAX_HEAT * 100

    def get_fever_rush_time_left(self) -> float:
        if not self.state.fever_rush_active:
            return 0.0
        elapsed = self.clock.now() - self.state.fever_rush_start_time
        return max(0.0, self.rush_duration_ms - elapsed)

    def reset(self) -> None:
        self.state = FeverState()
