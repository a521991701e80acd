from scheduling_engine.pricing.calculator import compute_estimate
from scheduling_engine.pricing.estimates import EstimateService

__all__ = ["compute_estimate", "EstimateService"]
