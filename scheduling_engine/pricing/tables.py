"""Pricing lookup tables keyed by closed enumerations.

Adding a service or damage type is a change to these maps only.
"""

from dataclasses import dataclass

from scheduling_engine.schemas.pricing_schema import (
    DamageSeverity,
    DamageType,
    DayType,
    DemandLevel,
    TimeOfDay,
)
from scheduling_engine.schemas.scheduling_schema import ServiceType


@dataclass(frozen=True)
class ServiceConfig:
    base_hours: float
    description: str


SERVICE_CONFIGS: dict[ServiceType, ServiceConfig] = {
    ServiceType.BASIC_WASH: ServiceConfig(1.0, "Basic Wash & Vacuum"),
    ServiceType.DETAIL: ServiceConfig(3.0, "Interior & Exterior Detail"),
    ServiceType.PREMIUM_DETAIL: ServiceConfig(6.0, "Premium Full Detail Service"),
    ServiceType.REPAIR: ServiceConfig(2.0, "Damage Repair Service"),
    ServiceType.CUSTOM: ServiceConfig(2.0, "Custom Service Package"),
}

# Hours to repair a minor instance of each damage type.
DAMAGE_BASE_HOURS: dict[DamageType, float] = {
    DamageType.SCRATCH: 0.5,
    DamageType.DENT: 2.0,
    DamageType.CHIP: 0.25,
    DamageType.CRACK: 1.5,
    DamageType.STAIN: 0.75,
    DamageType.BURN: 2.5,
    DamageType.TEAR: 1.0,
    DamageType.OTHER: 1.0,
}

SEVERITY_MULTIPLIERS: dict[DamageSeverity, float] = {
    DamageSeverity.MINOR: 1.0,
    DamageSeverity.MODERATE: 2.0,
    DamageSeverity.MAJOR: 4.0,
    DamageSeverity.SEVERE: 8.0,
}

DAMAGE_COMPLEXITY: dict[DamageType, float] = {
    DamageType.SCRATCH: 1.1,
    DamageType.DENT: 1.3,
    DamageType.CHIP: 1.0,
    DamageType.CRACK: 1.4,
    DamageType.STAIN: 1.2,
    DamageType.BURN: 1.8,
    DamageType.TEAR: 1.5,
    DamageType.OTHER: 1.2,
}

SEVERITY_COMPLEXITY_BONUS: dict[DamageSeverity, float] = {
    DamageSeverity.MINOR: 0.0,
    DamageSeverity.MODERATE: 0.1,
    DamageSeverity.MAJOR: 0.3,
    DamageSeverity.SEVERE: 0.5,
}


@dataclass(frozen=True)
class FilthinessBand:
    level: str
    min_score: float
    cleaning_hours: float
    labor_multiplier: float


# Highest band first; a score falls into the first band whose minimum it reaches.
FILTHINESS_BANDS: tuple[FilthinessBand, ...] = (
    FilthinessBand("extreme", 76, 5.0, 3.0),
    FilthinessBand("heavy", 51, 3.0, 2.0),
    FilthinessBand("moderate", 26, 1.5, 1.5),
    FilthinessBand("light", 0, 0.5, 1.0),
)

# Share of the overall score attributed to each zone when not measured.
ZONE_WEIGHTS: dict[str, float] = {
    "exterior": 0.4,
    "interior": 0.3,
    "engine": 0.2,
    "undercarriage": 0.1,
}


@dataclass(frozen=True)
class WeatherRule:
    label: str
    multiplier: float


HIGH_TEMP = (85.0, WeatherRule("High temperature", 1.2))
LOW_TEMP = (40.0, WeatherRule("Low temperature", 1.1))
HIGH_HUMIDITY = (70.0, WeatherRule("High humidity", 1.15))
PRECIPITATION = WeatherRule("Precipitation", 1.3)
HIGH_WIND = (15.0, WeatherRule("High wind", 1.1))
HIGH_UV = (7.0, WeatherRule("High UV index", 1.1))

DEMAND_MULTIPLIERS: dict[DemandLevel, float] = {
    DemandLevel.LOW: 0.9,
    DemandLevel.NORMAL: 1.0,
    DemandLevel.HIGH: 1.3,
    DemandLevel.PEAK: 1.8,
}

TIME_OF_DAY_MULTIPLIERS: dict[TimeOfDay, float] = {
    TimeOfDay.MORNING: 1.0,
    TimeOfDay.AFTERNOON: 1.1,
    TimeOfDay.EVENING: 1.2,
    TimeOfDay.NIGHT: 0.8,
}

DAY_TYPE_MULTIPLIERS: dict[DayType, float] = {
    DayType.WEEKDAY: 1.0,
    DayType.WEEKEND: 1.3,
}
