"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class RateSettings(BaseSettings):
    """Live rate provider and rate cache settings."""

    model_config = SettingsConfigDict(env_prefix="RATE_")

    api_url: str = "https://open.er-api.com/v6/latest/USD"
    timeout_seconds: float = 10.0
    freshness_hours: float = 4.0
    fallback_rate: float = 19.50  # Conservative MXN per USD when nothing else is known
    # "stale_only": fetch only when the cache is stale or missing.
    # "always": also refresh in the background when the cache is fresh.
    refresh_policy: Literal["stale_only", "always"] = "stale_only"


class HistorySettings(BaseSettings):
    """Historical series provider and history cache settings."""

    model_config = SettingsConfigDict(env_prefix="HISTORY_")

    api_url: str = "https://api.frankfurter.app"
    timeout_seconds: float = 10.0
    lookback_days: int = 15
    freshness_hours: float = 24.0


class StorageSettings(BaseSettings):
    """Persistent key-value store settings."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: Literal["sqlite", "memory"] = "sqlite"
    db_path: str = "data/pesopro.db"


class ConverterSettings(BaseSettings):
    """Converter defaults applied at session start."""

    model_config = SettingsConfigDict(env_prefix="CONVERTER_")

    default_amount: str = "10"
    default_side: Literal["USD", "MXN"] = "MXN"
    max_input_length: int = 10
    quick_amounts: list[int] = [1, 5, 10, 20, 50, 100]


class ChartSettings(BaseSettings):
    """Trend chart viewport geometry."""

    model_config = SettingsConfigDict(env_prefix="CHART_")

    width: float = 300.0
    height: float = 180.0
    padding: float = 15.0
    smoothing: float = 0.2
    interaction_padding: float = 10.0


class DashboardSettings(BaseSettings):
    """Web server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8080


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    rate: RateSettings = RateSettings()
    history: HistorySettings = HistorySettings()
    storage: StorageSettings = StorageSettings()
    converter: ConverterSettings = ConverterSettings()
    chart: ChartSettings = ChartSettings()
    dashboard: DashboardSettings = DashboardSettings()
