from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Tunable thresholds.  Override with PULSEBOARD_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PULSEBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Acute biometric flags (rugby-ready defaults)
    hrv_drop_pct: float = 0.15
    rhr_delta_bpm: float = 5.0
    load_spike_pct: float = 0.30
    sleep_min_hours: float = 6.0
    baseline_days: int = 7

    # Risk ranking
    notes_window_hours: float = 48.0
    top_n: int = 5

    # Stress level cut points (strain index)
    stress_low_cutoff: float = 30.0
    stress_high_cutoff: float = 60.0

    # Recovery
    sleep_target_h: float = 8.0
    default_age: int = 25


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
