"""
Power-Up System
================
Effect table, rarity scaling, and timed or usage-based expiry.
"""

import logging
from typing import Dict, List, Optional, Union

from .components import PowerUp, PowerUpType, Rarity

logger = logging.getLogger(__name__)


# =============================================================================
# EFFECT DEFINITIONS
# =============================================================================
# Base values before rarity scaling. 'words_left' makes expiry usage-based.

POWER_UP_EFFECTS: Dict[PowerUpType, dict] = {
    PowerUpType.SPEED: {
        'name': 'Speed Boost',
        'duration': 3000,
        'multiplier': 1.5,
    },
    PowerUpType.TIME_WARP: {
        'name': 'Time Warp',
        'duration': 5000,
        'multiplier': 0.5,
    },
    PowerUpType.SHIELD: {
        'name': 'Shield',
        'duration': 4000,
        'multiplier': 1.0,
    },
    PowerUpType.MULTIPLIER: {
        'name': 'Score Multiplier',
        'duration': 6000,
        'multiplier': 2.0,
        'words_left': 3,
    },
    PowerUpType.LASER_FOCUS: {
        'name': 'Laser Focus',
        'duration': 6000,
        'multiplier': 1.0,
    },
    PowerUpType.FREEZE: {
        'name': 'Freeze',
        'duration': 5000,
        'multiplier': 0.0,
    },
}

RARITY_MULTIPLIERS: Dict[Rarity, float] = {
    Rarity.COMMON: 1.0,
    Rarity.RARE: 1.3,
    Rarity.EPIC: 1.6,
}


class PowerUpSystem:
    """Holds at most one active instance per power-up type."""

    def __init__(self, clock):
        self.clock = clock
        self.active_power_ups: List[PowerUp] = []

    def activate_power_up(self, power_up_type: Union[PowerUpType, str],
                          rarity: Union[Rarity, str] = Rarity.COMMON) -> PowerUp:
        """Start (or restart) a power-up. Raises ValueError for unknown types."""
        power_up_type = PowerUpType(power_up_type)
        rarity = Rarity(rarity)

        effect = POWER_UP_EFFECTS[power_up_type]
        factor = RARITY_MULTIPLIERS[rarity]

        multiplier = effect['multiplier']
        if multiplier != 1:
            multiplier *= factor

        # Same type replaces the old instance and resets its timer
        self.active_power_ups = [
            pu for pu in self.active_power_ups if pu.type != power_up_type
        ]

        power_up = PowerUp(
            type=power_up_type,
            rarity=rarity,
            start_time=self.clock.now(),
            duration=effect['duration'] * factor,
            multiplier=multiplier,
            words_left=effect.get('words_left'),
        )
        self.active_power_ups.append(power_up)
        logger.debug(
            "Power-up activated",
            extra={'type': power_up_type.value, 'rarity': rarity.value},
        )
        return power_up

    def update_power_ups(self) -> None:
        """Drop expired power-ups."""
        now = self.clock.now()
        self.active_power_ups = [
            pu for pu in self.active_power_ups if not self._is_expired(pu, now)
        ]

    @staticmethod
    def _is_expired(power_up: PowerUp, now: float) -> bool:
        if power_up.words_left is not None:
            return power_up.words_left <= 0
        return now - power_up.start_time >= power_up.duration

    def is_active(self, power_up_type: Union[PowerUpType, str]) -> bool:
        return self.get_power_up(power_up_type) is not None

    def get_power_up(self, power_up_type: Union[PowerUpType, str]) -> Optional[PowerUp]:
        power_up_type = PowerUpType(power_up_type)
        for pu in self.active_power_ups:
            if pu.type == power_up_type:
                return pu
        return None

    def get_time_remaining(self, power_up_type: Union[PowerUpType, str]) -> float:
        """Milliseconds left, or words left for usage-based power-ups."""
        power_up = self.get_power_up(power_up_type)
        if power_up is None:
            return 0

        if power_up.words_left is not None:
            return power_up.words_left

        elapsed = self.clock.now() - power_up.start_time
        return max(0.0, power_up.duration - elapsed)

    def consume_multiplier_use(self) -> None:
        power_up = self.get_power_up(PowerUpType.MULTIPLIER)
        if power_up and power_up.words_left is not None and power_up.words_left > 0:
            power_up.words_left -= 1

    def reset(self) -> None:
        self.active_power_ups = []
