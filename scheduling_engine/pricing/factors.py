"""
Cleanliness, weather and demand factors feeding the pricing pipeline.

Every function here is pure. Time-dependent surge factors are derived
from an explicit reference instant, never from the wall clock.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from scheduling_engine.config import settings
from scheduling_engine.pricing.tables import (
    DAY_TYPE_MULTIPLIERS,
    DEMAND_MULTIPLIERS,
    FILTHINESS_BANDS,
    HIGH_HUMIDITY,
    HIGH_TEMP,
    HIGH_UV,
    HIGH_WIND,
    LOW_TEMP,
    PRECIPITATION,
    TIME_OF_DAY_MULTIPLIERS,
    ZONE_WEIGHTS,
)
from scheduling_engine.schemas.booking_schema import ZoneScores
from scheduling_engine.schemas.pricing_schema import (
    DayType,
    DemandLevel,
    SurgeFactors,
    TimeOfDay,
    WeatherConditions,
)


@dataclass(frozen=True)
class FilthinessMetrics:
    overall_score: float
    zone_breakdown: dict[str, float] = field(default_factory=dict)
    severity_level: str = "light"
    estimated_cleaning_time: float = 0.0
    labor_multiplier: float = 1.0


def filthiness_metrics(
    overall_score: float, zone_scores: Optional[ZoneScores] = None
) -> FilthinessMetrics:
    """Band a 0-100 filthiness score into cleaning hours and a labor multiplier."""
    score = max(0.0, min(100.0, overall_score))
    band = next(b for b in FILTHINESS_BANDS if score >= b.min_score)

    measured = zone_scores.model_dump() if zone_scores else {}
    zones = {
        zone: measured[zone] if measured.get(zone) is not None else score * weight
        for zone, weight in ZONE_WEIGHTS.items()
    }

    return FilthinessMetrics(
        overall_score=score,
        zone_breakdown=zones,
        severity_level=band.level,
        estimated_cleaning_time=band.cleaning_hours,
        labor_multiplier=band.labor_multiplier,
    )


def weather_impact(weather: WeatherConditions) -> tuple[float, list[str]]:
    """Return the combined weather multiplier (>= 1) and the triggering factors."""
    multiplier = 1.0
    factors: list[str] = []

    def apply(rule) -> None:
        nonlocal multiplier
        multiplier *= rule.multiplier
        factors.append(rule.label)

    if weather.temperature > HIGH_TEMP[0]:
        apply(HIGH_TEMP[1])
    elif weather.temperature < LOW_TEMP[0]:
        apply(LOW_TEMP[1])
    if weather.humidity > HIGH_HUMIDITY[0]:
        apply(HIGH_HUMIDITY[1])
    if weather.precipitation:
        apply(PRECIPITATION)
    if weather.wind_speed > HIGH_WIND[0]:
        apply(HIGH_WIND[1])
    if weather.uv_index > HIGH_UV[0]:
        apply(HIGH_UV[1])

    return multiplier, factors


def time_of_day_for(hour: int) -> TimeOfDay:
    if 6 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 17:
        return TimeOfDay.AFTERNOON
    if 17 <= hour < 22:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def seasonal_factor(month: int) -> float:
    """Demand factor by calendar month (1 = January)."""
    if 3 <= month <= 8:
        return 1.2
    if 9 <= month <= 11:
        return 1.1
    return 0.9


def resolve_surge_factors(
    custom: Optional[SurgeFactors], as_of: Optional[datetime]
) -> SurgeFactors:
    """Fill unset time-derived factors from ``as_of``; neutral when there is no reference time."""
    custom = custom or SurgeFactors()
    if as_of is not None:
        local = as_of.astimezone(ZoneInfo(settings.service_window.timezone))
        derived_time = time_of_day_for(local.hour)
        derived_day = DayType.WEEKEND if local.weekday() >= 5 else DayType.WEEKDAY
        derived_season = seasonal_factor(local.month)
    else:
        derived_time, derived_day, derived_season = TimeOfDay.MORNING, DayType.WEEKDAY, 1.0

    return custom.model_copy(update={
        "time_of_day": custom.time_of_day or derived_time,
        "day_type": custom.day_type or derived_day,
        "seasonal_factor": custom.seasonal_factor or derived_season,
    })


def surge_multiplier(factors: SurgeFactors) -> float:
    """Product of demand, time of day, day type, season, holiday and occupancy factors."""
    multiplier = DEMAND_MULTIPLIERS[factors.demand_level]
    multiplier *= TIME_OF_DAY_MULTIPLIERS[factors.time_of_day or TimeOfDay.MORNING]
    multiplier *= DAY_TYPE_MULTIPLIERS[factors.day_type or DayType.WEEKDAY]
    multiplier *= factors.seasonal_factor or 1.0
    multiplier *= factors.holiday_multiplier
    multiplier *= factors.occupancy_multiplier
    return multiplier


def surge_factor_labels(factors: SurgeFactors) -> list[str]:
    labels = []
    if factors.demand_level != DemandLevel.NORMAL:
        labels.append(f"{factors.demand_level.value} demand")
    if factors.time_of_day == TimeOfDay.EVENING:
        labels.append("Evening hours")
    if factors.day_type == DayType.WEEKEND:
        labels.append("Weekend")
    if (factors.seasonal_factor or 1.0) > 1.0:
        labels.append("Peak season")
    if factors.holiday_multiplier > 1.0:
        labels.append("Holiday period")
    if factors.occupancy_multiplier > 1.0:
        labels.append("High occupancy")
    return labels
