"""Game configuration."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GameSettings(BaseSettings):
    """
    Tunable timings and thresholds.

    Values can be overridden with DANGER_WALL_* environment variables,
    a .env file, or direct instantiation:

        settings = GameSettings(boss_trigger_interval=3)
    """

    # Sub-mode triggers (completed normal words)
    frenzy_trigger_interval: int = Field(default=5, ge=1)
    boss_trigger_interval: int = Field(default=12, ge=1)

    # Frenzy
    frenzy_duration_ms: float = Field(default=30000.0, ge=5000.0, le=60000.0)
    frenzy_countdown_ms: float = Field(
        default=0.0, ge=0, description="0 starts frenzy immediately"
    )
    frenzy_result_display_ms: float = Field(default=2000.0, ge=0)

    # Boss
    boss_duration_ms: float = Field(default=45000.0, gt=5000.0)
    boss_countdown_ms: float = Field(default=3000.0, ge=0)
    boss_victory_display_ms: float = Field(default=4000.0, ge=0)
    boss_timeout_display_ms: float = Field(default=3000.0, ge=0)
    boss_defeat_display_ms: float = Field(default=1500.0, ge=0)

    # Fever
    fever_rush_duration_ms: float = Field(default=10000.0, gt=0)

    # Danger wall
    base_scroll_speed: float = Field(default=1.5, ge=0)
    max_scroll_speed: float = Field(default=3.5, ge=0)
    scroll_resume_delay_ms: float = Field(default=1000.0, ge=0)
    game_over_position: float = Field(default=0.02, ge=0, lt=1)

    # Terminal front-end
    target_fps: int = Field(default=60, ge=10, le=240)
    log_file: Optional[str] = Field(
        default='danger_wall.log', description="None disables file logging"
    )
    log_level: str = Field(default='INFO')

    model_config = SettingsConfigDict(env_prefix="DANGER_WALL_", env_file=".env", extra="ignore")
