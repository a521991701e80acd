"""Shared utilities used across the scheduling engine."""

import math
import re


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("(212) 555-0147")
        '2125550147'
        >>> normalize_phone("+1 212 555 0147")
        '+12125550147'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def round_cents(value: float) -> int:
    """Round a monetary amount to whole cents, halves rounding up.

    Examples:
        >>> round_cents(2.5)
        3
        >>> round_cents(1499.4999)
        1499
    """
    return int(math.floor(value + 0.5))
