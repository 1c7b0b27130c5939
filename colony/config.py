"""Configuration settings for the colony runtime — loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from colony.core.compounds import DEFAULT_RESERVE_THRESHOLDS


class Settings(BaseSettings):
    """Application settings with env-driven overrides.

    All values can be overridden via environment variables prefixed with COLONY_.
    Example: COLONY_TICK_RATE_MS=250 overrides tick_rate_ms.
    Dict and list values are read as JSON, e.g.
    COLONY_RESERVE_THRESHOLDS='{"H": 10000}'.
    """

    # Tick loop
    tick_rate_ms: int = 100
    stats_interval: int = 100
    room_names: list[str] = Field(default_factory=lambda: ["W1N1"])

    # Production
    reaction_amount: int = 5  # units synthesized per facility tick
    batch_size: int = 500
    reserve_thresholds: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_RESERVE_THRESHOLDS)
    )

    # Logistics
    stale_task_ticks: int = 300

    # Spawn budget used for body selection
    energy_capacity: int = 1300

    # Redis connection
    redis_url: str = "redis://redis:6379/0"

    # Telemetry / persistence
    snapshot_interval_ticks: int = 50
    snapshot_ttl_sec: int = 300

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    model_config = SettingsConfigDict(
        env_prefix="COLONY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
