"""Engine configuration using Pydantic settings.

Thresholds and sizing defaults live here so a deployment can tune them via
``TRACKSIDE_*`` environment variables (or a ``.env`` file) without touching
code. Payout estimation tables are not settings: they are module constants
next to the code that uses them.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

KELLY_FRACTION_NAMES = ("full", "half", "quarter", "eighth")


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRACKSIDE_",
        extra="ignore",
    )

    # App
    log_level: str = "INFO"

    # Kelly sizing
    min_bet_amount: float = 2.0
    kelly_aggressive_threshold: float = 0.25   # full-Kelly above this is flagged
    kelly_marginal_edge: float = 0.03          # positive edge under this is flagged
    low_bankroll_multiple: float = 50.0        # bankroll < N x min bet is flagged
    default_kelly_fraction: str = "quarter"
    default_max_bet_percent: float = 0.10
    default_min_edge: float = 0.10

    # Tier thresholds (external scorer works on a 0-240 scale)
    tier1_min_score: float = 180.0
    tier2_min_score: float = 160.0
    tier3_min_overlay: float = 25.0            # value bombs need this overlay %

    # Multi-race scanning (value edges are percentages)
    value_play_min_edge: float = 50.0
    singleable_min_edge: float = 100.0
    prime_max_combinations: int = 50
    good_max_combinations: int = 100

    @field_validator("default_kelly_fraction")
    @classmethod
    def _normalise_fraction(cls, value: str) -> str:
        name = value.strip().lower()
        if name not in KELLY_FRACTION_NAMES:
            raise ValueError(
                f"default_kelly_fraction must be one of {', '.join(KELLY_FRACTION_NAMES)}"
            )
        return name

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        return value.strip().upper()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Export for convenience
settings = get_settings()
