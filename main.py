"""
Command-line demo of the scheduling engine.

Seeds one inspection with an approved estimate for a demo tenant, then
shows team availability, the best slot for the service and a booking in
that slot. Everything runs in memory.

Usage:
    python main.py
    python main.py --service premium_detail --team team_bravo --days 3
    python main.py --service detail --filthiness 80 --verbose
"""

import argparse
import logging
import sys
from datetime import timedelta

from scheduling_engine.auth import CallerContext, StaticIdentity
from scheduling_engine.engine import SchedulingEngine
from scheduling_engine.errors import SchedulingError
from scheduling_engine.logging_context import set_request_context
from scheduling_engine.schemas.booking_schema import (
    CustomerContact,
    EstimateStatus,
    Inspection,
    VehicleInfo,
)
from scheduling_engine.schemas.scheduling_schema import ServiceType

logger = logging.getLogger(__name__)

DEMO_TENANT = "demo_shop"


def _seed_inspection(engine: SchedulingEngine, filthiness: float) -> Inspection:
    inspection = Inspection(
        id="insp_demo",
        tenant_id=DEMO_TENANT,
        customer=CustomerContact(name="Jordan Avery", email="jordan@example.com", phone="5551234567"),
        vehicle=VehicleInfo(make="Honda", model="Accord", year=2021),
        filthiness_score=filthiness,
    )
    engine.store.save_inspection(inspection)
    return inspection


def _format_cents(cents: int) -> str:
    return f"${cents / 100:,.2f}"


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Price, schedule and book a service with the in-memory engine."
    )
    parser.add_argument(
        "--service",
        type=str,
        default=ServiceType.DETAIL.value,
        choices=[s.value for s in ServiceType],
        help="Service to price and book.",
    )
    parser.add_argument(
        "--team",
        type=str,
        default=None,
        help="Preferred team ID (default: any qualified team).",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=2,
        help="Days of team availability to list.",
    )
    parser.add_argument(
        "--filthiness",
        type=float,
        default=0.0,
        help="Overall filthiness score (0-100) of the demo vehicle.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging output.",
    )

    args = parser.parse_args()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    engine = SchedulingEngine(
        identity=StaticIdentity(CallerContext(tenant_id=DEMO_TENANT, user_id="cli"))
    )
    set_request_context(DEMO_TENANT)

    try:
        inspection = _seed_inspection(engine, args.filthiness)
        breakdown = engine.compute_estimate(inspection.id, args.service)
        estimate = engine.save_estimate(inspection.id, breakdown)
        engine.set_estimate_status(estimate.id, EstimateStatus.APPROVED)

        sys.stdout.write(f"Estimate {estimate.estimate_number}\n")
        for item in breakdown.line_items:
            sys.stdout.write(f"  {item.description:<40} {_format_cents(item.total):>12}\n")
        sys.stdout.write(f"  {'Total':<40} {_format_cents(breakdown.total):>12}\n\n")

        best = engine.find_best_time_slot(args.service, team_preference=args.team)
        if best is None:
            logger.error("No slot available for %s in the search horizon", args.service)
            sys.exit(1)

        window_start = best.time_slot.start
        slots = engine.get_team_availability(
            best.team_id, window_start, window_start + timedelta(days=args.days)
        )
        sys.stdout.write(
            f"Availability for {best.team_id} over {args.days} day(s) "
            f"from {window_start.isoformat()}:\n"
        )
        for entry in slots:
            check = entry.availability
            sys.stdout.write(
                f"  {entry.time_slot.start.isoformat()}  "
                f"{check.current_occupancy}/{check.max_capacity}  x{check.surge_multiplier}\n"
            )

        result = engine.book_appointment(
            inspection.id, best.time_slot.start, best.team_id, estimate_id=estimate.id
        )
    except SchedulingError as exc:
        logger.error("Demo failed (%s): %s", type(exc).__name__, exc)
        sys.exit(1)

    sys.stdout.write(
        f"\nBooked {result.booking.booking_number} with {result.team_details.name}\n"
        f"  {result.time_slot_details.formatted}\n"
        f"  Amount: {_format_cents(result.pricing_details.final_amount)}\n"
        f"  Reminders: {len(result.notifications)}\n"
    )


if __name__ == "__main__":
    main()
