"""
Multi-stage estimate calculator.

Stages run in a fixed order because each percentage stage applies to the
running subtotal built by the stages before it:

    1. base labor        service base hours x labor rate
    2. damage repairs    per-damage repair time x labor rate
    3. cleanliness       filthiness band cleaning hours x labor rate
    4. weather           running subtotal x (weather multiplier - 1)
    5. surge             running subtotal x (surge multiplier - 1), capped
    6. materials         running subtotal x material rate, or an override
    7. tax               (running subtotal + materials - discount) x tax rate
    8. total             max(subtotal + tax, minimum charge)

The calculator has no side effects: identical inputs always produce an
identical breakdown. All money is integer cents.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

from scheduling_engine.pricing.factors import (
    filthiness_metrics,
    resolve_surge_factors,
    surge_factor_labels,
    surge_multiplier,
    weather_impact,
)
from scheduling_engine.pricing.tables import (
    DAMAGE_BASE_HOURS,
    DAMAGE_COMPLEXITY,
    SERVICE_CONFIGS,
    SEVERITY_COMPLEXITY_BONUS,
    SEVERITY_MULTIPLIERS,
)
from scheduling_engine.schemas.booking_schema import Inspection
from scheduling_engine.schemas.pricing_schema import (
    BaseLabor,
    BaseRates,
    Damage,
    DamageAdjustment,
    EstimateBreakdown,
    FilthinessAdjustment,
    LineItem,
    Materials,
    MultiplierAdjustment,
    ShopSettings,
    SurgeFactors,
    Tax,
    WeatherConditions,
)
from scheduling_engine.schemas.scheduling_schema import ServiceType
from scheduling_engine.utils import round_cents

logger = logging.getLogger(__name__)


def default_repair_hours(damage: Damage) -> float:
    return DAMAGE_BASE_HOURS[damage.type] * SEVERITY_MULTIPLIERS[damage.severity]


def complexity_multiplier(damage: Damage) -> float:
    return DAMAGE_COMPLEXITY[damage.type] + SEVERITY_COMPLEXITY_BONUS[damage.severity]


def _damage_adjustment(damages: Iterable[Damage], labor_rate: int) -> DamageAdjustment:
    hours = 0.0
    cost = 0
    max_complexity = 1.0
    for damage in damages:
        repair_time = (
            damage.estimated_repair_time
            if damage.estimated_repair_time is not None
            else default_repair_hours(damage)
        )
        repair_cost = (
            damage.repair_estimate
            if damage.repair_estimate is not None
            else round_cents(repair_time * labor_rate)
        )
        hours += repair_time
        cost += repair_cost
        max_complexity = max(max_complexity, complexity_multiplier(damage))
    return DamageAdjustment(
        repair_hours=hours, repair_cost=cost, complexity_multiplier=max_complexity
    )


def _filthiness_adjustment(inspection: Inspection, labor_rate: int) -> FilthinessAdjustment:
    if not inspection.filthiness_score:
        return FilthinessAdjustment()
    metrics = filthiness_metrics(inspection.filthiness_score, inspection.filthiness_zone_scores)
    return FilthinessAdjustment(
        cleaning_hours=metrics.estimated_cleaning_time,
        severity_multiplier=metrics.labor_multiplier,
        additional_cost=round_cents(metrics.estimated_cleaning_time * labor_rate),
    )


def _hourly_line(description: str, hours: float, cost: int) -> LineItem:
    if hours > 0:
        return LineItem(
            description=description,
            quantity=hours,
            unit_price=round_cents(cost / hours),
            total=cost,
        )
    return LineItem(description=description, quantity=1, unit_price=cost, total=cost)


def _flat_line(description: str, amount: int) -> LineItem:
    return LineItem(description=description, quantity=1, unit_price=amount, total=amount)


def _line_items(
    description: str,
    base: BaseLabor,
    damage: DamageAdjustment,
    filthiness: FilthinessAdjustment,
    weather: MultiplierAdjustment,
    surge: MultiplierAdjustment,
    materials: Materials,
    discount: int,
    tax: Tax,
    floor_adjustment: int,
) -> list[LineItem]:
    items: list[LineItem] = []
    if base.subtotal:
        items.append(
            LineItem(description=description, quantity=base.hours, unit_price=base.rate, total=base.subtotal)
        )
    if damage.repair_cost:
        items.append(_hourly_line("Damage Repair", damage.repair_hours, damage.repair_cost))
    if filthiness.additional_cost:
        items.append(
            _hourly_line("Additional Cleaning", filthiness.cleaning_hours, filthiness.additional_cost)
        )
    if weather.additional_cost:
        items.append(
            _flat_line(f"Weather Adjustment ({', '.join(weather.factors)})", weather.additional_cost)
        )
    if surge.additional_cost:
        label = "Surge Pricing" if surge.additional_cost > 0 else "Off-Peak Adjustment"
        suffix = f" ({', '.join(surge.factors)})" if surge.factors else ""
        items.append(_flat_line(f"{label}{suffix}", surge.additional_cost))
    if materials.cost:
        items.append(_flat_line("Materials & Supplies", materials.cost))
    if discount:
        items.append(_flat_line("Discount", -discount))
    if tax.amount:
        items.append(_flat_line(f"Sales Tax ({tax.rate * 100:g}%)", tax.amount))
    if floor_adjustment:
        items.append(_flat_line("Minimum Charge Adjustment", floor_adjustment))
    return items


def compute_estimate(
    inspection: Inspection,
    damages: Iterable[Damage],
    service_type: ServiceType | str,
    base_rates: BaseRates,
    shop_settings: ShopSettings,
    weather: Optional[WeatherConditions] = None,
    surge_factors: Optional[SurgeFactors] = None,
    as_of: Optional[datetime] = None,
    discount: int = 0,
    materials_override: Optional[int] = None,
) -> EstimateBreakdown:
    """
    Price a service for an inspected vehicle.

    Args:
        as_of: Reference instant for time-of-day, weekend and season surge
            factors. Without it those factors are neutral.
        discount: Cents subtracted before tax.
        materials_override: Fixed materials cost replacing the percentage.

    Returns:
        The structured breakdown plus customer-facing line items.
    """
    service = ServiceType(service_type)
    config = SERVICE_CONFIGS[service]
    labor_rate = base_rates.labor_rate

    base = BaseLabor(
        hours=config.base_hours,
        rate=labor_rate,
        subtotal=round_cents(config.base_hours * labor_rate),
    )
    damage = _damage_adjustment(damages, labor_rate)
    filthiness = _filthiness_adjustment(inspection, labor_rate)

    running = base.subtotal + damage.repair_cost + filthiness.additional_cost

    if weather is not None and shop_settings.weather_adjustments:
        multiplier, factors = weather_impact(weather)
        weather_adj = MultiplierAdjustment(
            multiplier=multiplier,
            additional_cost=round_cents(running * (multiplier - 1)),
            factors=factors,
        )
    else:
        weather_adj = MultiplierAdjustment()
    running += weather_adj.additional_cost

    if shop_settings.surge_enabled:
        resolved = resolve_surge_factors(surge_factors, as_of)
        multiplier = min(surge_multiplier(resolved), shop_settings.maximum_surge)
        surge_adj = MultiplierAdjustment(
            multiplier=multiplier,
            additional_cost=round_cents(running * (multiplier - 1)),
            factors=surge_factor_labels(resolved),
        )
    else:
        surge_adj = MultiplierAdjustment()
    running += surge_adj.additional_cost

    if materials_override is not None:
        materials = Materials(percentage=0.0, cost=materials_override, overridden=True)
    else:
        materials = Materials(
            percentage=base_rates.material_rate,
            cost=round_cents(running * base_rates.material_rate),
        )

    applied_discount = min(max(discount, 0), max(running + materials.cost, 0))
    subtotal = running + materials.cost - applied_discount
    tax = Tax(rate=base_rates.tax_rate, amount=round_cents(subtotal * base_rates.tax_rate))

    before_floor = subtotal + tax.amount
    total = max(before_floor, shop_settings.minimum_charge)

    breakdown = EstimateBreakdown(
        service_type=service.value,
        base_labor=base,
        damage_adjustments=damage,
        filthiness_adjustment=filthiness,
        weather_adjustment=weather_adj,
        surge_adjustment=surge_adj,
        materials=materials,
        discount=applied_discount,
        subtotal=subtotal,
        tax=tax,
        total=total,
        minimum_charge_applied=total != before_floor,
        line_items=_line_items(
            config.description, base, damage, filthiness, weather_adj, surge_adj,
            materials, applied_discount, tax, total - before_floor,
        ),
    )
    logger.debug("Estimate for %s: total %d cents", service.value, total)
    return breakdown
