"""
Centralized configuration with environment variable overrides.

Service window, pricing defaults, and reminder offsets live here so the
scheduling and pricing modules never hardcode business constants.
Per-tenant pricing overrides are stored alongside tenant data; these
values are the fallback when a tenant has not configured its own.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from scheduling_engine.logging_context import RequestContextFilter

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] [%(tenant_id)s/%(request_id)s] %(levelname)s: %(message)s"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


def _safe_int_list(env_var: str, default: str) -> tuple[int, ...]:
    raw = os.getenv(env_var, default)
    try:
        return tuple(int(part) for part in raw.split(",") if part.strip())
    except ValueError:
        raise ValueError(
            f"Invalid integer list for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class ServiceWindowConfig:
    """Global service window and slot search parameters."""

    start_hour: int = _safe_int("SERVICE_WINDOW_START_HOUR", "8")
    end_hour: int = _safe_int("SERVICE_WINDOW_END_HOUR", "18")
    timezone: str = os.getenv("SERVICE_TIMEZONE", "America/New_York")
    default_slot_minutes: int = _safe_int("DEFAULT_SLOT_MINUTES", "120")
    search_horizon_days: int = _safe_int("SEARCH_HORIZON_DAYS", "7")
    search_lead_minutes: int = _safe_int("SEARCH_LEAD_MINUTES", "60")


@dataclass(frozen=True)
class PricingConfig:
    """Fallback base rates and shop settings, all money in cents."""

    labor_rate: int = _safe_int("LABOR_RATE_CENTS", "7500")
    material_rate: float = _safe_float("MATERIAL_RATE", "0.2")
    tax_rate: float = _safe_float("TAX_RATE", "0.0875")
    minimum_charge: int = _safe_int("MINIMUM_CHARGE_CENTS", "2500")
    maximum_surge: float = _safe_float("MAXIMUM_SURGE", "2.0")
    surge_enabled: bool = _safe_bool("SURGE_ENABLED", "true")
    weather_adjustments: bool = _safe_bool("WEATHER_ADJUSTMENTS", "true")
    estimate_valid_days: int = _safe_int("ESTIMATE_VALID_DAYS", "30")


@dataclass(frozen=True)
class NotificationConfig:
    """Reminder scheduling settings."""

    enabled: bool = _safe_bool("NOTIFICATIONS_ENABLED", "true")
    reminder_offsets_minutes: tuple[int, ...] = _safe_int_list(
        "REMINDER_OFFSETS_MINUTES", "1440,120,30"
    )


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    service_window: ServiceWindowConfig = field(default_factory=ServiceWindowConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    teams_config_path: Optional[str] = os.getenv("TEAMS_CONFIG_PATH") or None


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    window = config.service_window
    for name, hour in [
        ("SERVICE_WINDOW_START_HOUR", window.start_hour),
        ("SERVICE_WINDOW_END_HOUR", window.end_hour),
    ]:
        if not 0 <= hour <= 23:
            raise ValueError(f"{name} must be between 0 and 23, got {hour}")
    if window.start_hour >= window.end_hour:
        raise ValueError(
            "SERVICE_WINDOW_START_HOUR must be before SERVICE_WINDOW_END_HOUR, "
            f"got {window.start_hour} >= {window.end_hour}"
        )
    if window.default_slot_minutes < 1:
        raise ValueError(
            f"DEFAULT_SLOT_MINUTES must be >= 1, got {window.default_slot_minutes}"
        )
    if window.search_horizon_days < 1:
        raise ValueError(
            f"SEARCH_HORIZON_DAYS must be >= 1, got {window.search_horizon_days}"
        )
    if window.search_lead_minutes < 0:
        raise ValueError(
            f"SEARCH_LEAD_MINUTES must be >= 0, got {window.search_lead_minutes}"
        )

    pricing = config.pricing
    for rate_name, rate_value in [
        ("MATERIAL_RATE", pricing.material_rate),
        ("TAX_RATE", pricing.tax_rate),
    ]:
        if not 0.0 <= rate_value <= 1.0:
            raise ValueError(f"{rate_name} must be between 0.0 and 1.0, got {rate_value}")
    if pricing.labor_rate < 0:
        raise ValueError(f"LABOR_RATE_CENTS must be >= 0, got {pricing.labor_rate}")
    if pricing.minimum_charge < 0:
        raise ValueError(
            f"MINIMUM_CHARGE_CENTS must be >= 0, got {pricing.minimum_charge}"
        )
    if pricing.maximum_surge < 1.0:
        raise ValueError(f"MAXIMUM_SURGE must be >= 1.0, got {pricing.maximum_surge}")

    if any(offset <= 0 for offset in config.notifications.reminder_offsets_minutes):
        raise ValueError(
            "REMINDER_OFFSETS_MINUTES must all be > 0, "
            f"got {config.notifications.reminder_offsets_minutes}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    handler = logging.StreamHandler()
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[handler],
    )
    logger.info(
        "Configuration loaded (service window %02d:00-%02d:00 %s)",
        config.service_window.start_hour,
        config.service_window.end_hour,
        config.service_window.timezone,
    )
    return config


# Singleton instance
settings = load_config()
