"""Application settings loaded from environment variables via pydantic-settings."""

from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogFormat(StrEnum):
    json = "json"
    console = "console"


class TimeframeSetting(StrEnum):
    six_months = "6m"
    twelve_months = "12m"


class Settings(BaseSettings):
    """Central configuration: all values sourced from env vars or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GHG_",
        case_sensitive=False,
    )

    # ── Farm defaults ───────────────────────────────────────────────────────
    default_concentrate_feed: float = Field(default=8.08, ge=0)
    default_nitrogen_rate: float = Field(default=180.0, ge=0)
    default_feed_cost_per_kg: float = Field(default=0.38, gt=0)
    default_timeframe: TimeframeSetting = TimeframeSetting.six_months
    currency_symbol: str = "£"

    # ── Model baselines & thresholds ────────────────────────────────────────
    baseline_feed: float = 8.08
    baseline_nitrogen: float = 180.0
    emissions_threshold: float = 1.5
    cost_per_litre_threshold: float = 0.35
    protein_efficiency_threshold: float = 12.0
    nitrogen_efficiency_threshold: float = 15.0
    base_operational_cost: float = 0.20
    cost_offset: float = 0.25
    target_yield: float = 9000.0
    operational_target: float = 70.0

    # ── Sessions ────────────────────────────────────────────────────────────
    max_sessions: int = Field(default=1000, ge=1)
    session_ttl_minutes: int = Field(default=60, ge=1)
    trend_seed: int | None = None

    # ── Observability ───────────────────────────────────────────────────────
    log_level: str = "info"
    log_format: LogFormat = LogFormat.json


@dataclass(frozen=True, slots=True)
class FarmConstants:
    """Immutable baselines and thresholds shared by the pure engines."""

    baseline_feed: float = 8.08
    baseline_nitrogen: float = 180.0
    emissions_threshold: float = 1.5
    cost_per_litre_threshold: float = 0.35
    protein_efficiency_threshold: float = 12.0
    nitrogen_efficiency_threshold: float = 15.0
    base_operational_cost: float = 0.20
    cost_offset: float = 0.25
    target_yield: float = 9000.0
    operational_target: float = 70.0
    currency_symbol: str = "£"


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance (cached after first call)."""
    return Settings()


@lru_cache
def get_constants() -> FarmConstants:
    settings = get_settings()
    return FarmConstants(
        baseline_feed=settings.baseline_feed,
        baseline_nitrogen=settings.baseline_nitrogen,
        emissions_threshold=settings.emissions_threshold,
        cost_per_litre_threshold=settings.cost_per_litre_threshold,
        protein_efficiency_threshold=settings.protein_efficiency_threshold,
        nitrogen_efficiency_threshold=settings.nitrogen_efficiency_threshold,
        base_operational_cost=settings.base_operational_cost,
        cost_offset=settings.cost_offset,
        target_yield=settings.target_yield,
        operational_target=settings.operational_target,
        currency_symbol=settings.currency_symbol,
    )
