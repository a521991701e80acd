"""Pricing inputs and the itemized estimate breakdown."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DamageType(str, Enum):
    SCRATCH = "scratch"
    DENT = "dent"
    CHIP = "chip"
    CRACK = "crack"
    STAIN = "stain"
    BURN = "burn"
    TEAR = "tear"
    OTHER = "other"


class DamageSeverity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    SEVERE = "severe"


class DemandLevel(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    PEAK = "peak"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"


class DayType(str, Enum):
    WEEKDAY = "weekday"
    WEEKEND = "weekend"


class Damage(BaseModel):
    """A detected damage record supplied by the damage-detection pipeline."""

    model_config = ConfigDict(frozen=True)

    type: DamageType
    severity: DamageSeverity
    estimated_repair_time: Optional[float] = Field(default=None, ge=0, description="Hours")
    repair_estimate: Optional[int] = Field(default=None, ge=0, description="Cents")


class BaseRates(BaseModel):
    """Per-tenant labor, materials and tax rates."""

    model_config = ConfigDict(frozen=True)

    labor_rate: int = Field(ge=0, description="Cents per hour")
    material_rate: float = Field(ge=0.0, le=1.0)
    tax_rate: float = Field(ge=0.0, le=1.0)


class ShopSettings(BaseModel):
    """Per-tenant pricing switches and limits."""

    model_config = ConfigDict(frozen=True)

    surge_enabled: bool = True
    weather_adjustments: bool = True
    minimum_charge: int = Field(default=2500, ge=0)
    maximum_surge: float = Field(default=2.0, ge=1.0)


class WeatherConditions(BaseModel):
    model_config = ConfigDict(frozen=True)

    temperature: float = Field(description="Fahrenheit")
    humidity: float = Field(description="Percent")
    precipitation: bool = False
    wind_speed: float = Field(default=0.0, description="mph")
    uv_index: float = 0.0


class SurgeFactors(BaseModel):
    """Caller-supplied surge overrides.

    Any field left unset is derived from the estimate's reference time
    (time of day, day type, season) or defaults to neutral.
    """

    model_config = ConfigDict(frozen=True)

    demand_level: DemandLevel = DemandLevel.NORMAL
    time_of_day: Optional[TimeOfDay] = None
    day_type: Optional[DayType] = None
    seasonal_factor: Optional[float] = Field(default=None, gt=0)
    holiday_multiplier: float = Field(default=1.0, gt=0)
    occupancy_multiplier: float = Field(default=1.0, ge=1.0)


class BaseLabor(BaseModel):
    hours: float
    rate: int
    subtotal: int


class DamageAdjustment(BaseModel):
    repair_hours: float = 0.0
    repair_cost: int = 0
    complexity_multiplier: float = 1.0


class FilthinessAdjustment(BaseModel):
    cleaning_hours: float = 0.0
    severity_multiplier: float = 1.0
    additional_cost: int = 0


class MultiplierAdjustment(BaseModel):
    """A percentage stage applied to the running subtotal."""

    multiplier: float = 1.0
    additional_cost: int = 0
    factors: list[str] = Field(default_factory=list)


class Materials(BaseModel):
    percentage: float
    cost: int
    overridden: bool = False


class Tax(BaseModel):
    rate: float
    amount: int


class LineItem(BaseModel):
    description: str
    quantity: float
    unit_price: int
    total: int


class EstimateBreakdown(BaseModel):
    """Itemized result of the pricing pipeline. Money in cents."""

    service_type: str
    base_labor: BaseLabor
    damage_adjustments: DamageAdjustment
    filthiness_adjustment: FilthinessAdjustment
    weather_adjustment: MultiplierAdjustment
    surge_adjustment: MultiplierAdjustment
    materials: Materials
    discount: int = 0
    subtotal: int
    tax: Tax
    total: int
    minimum_charge_applied: bool = False
    line_items: list[LineItem] = Field(default_factory=list)

    @property
    def total_hours(self) -> float:
        return (
            self.base_labor.hours
            + self.damage_adjustments.repair_hours
            + self.filthiness_adjustment.cleaning_hours
        )
