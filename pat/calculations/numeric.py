"""
Shared Numeric Helpers

Coercion, rounding and carry-cost conversion used by both evaluators.
Invalid input never raises here: it becomes 0 so a half-filled form still
produces a result.
"""

import math
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Dict

# Fixed deal assumptions, read by every evaluation
CLOSING_COSTS_RATE = 0.05  # 5% of property value
MISC_RATE_ANNUAL = 0.01  # 1% of property value per year
DSCR_NOI_HAIRCUT = 0.85  # lenders size debt against 85% of NOI

NOT_AVAILABLE = math.nan

CARRY_COST_FIELDS = ("taxes_monthly", "insurance_monthly", "hoa_monthly")
VIEW_MODES = ("monthly", "annual")
MONTHS_PER_YEAR = 12
DEFAULT_LOAN_LENGTH_YEARS = 30


def to_number(value: Any) -> float:
    """
    Parse a loosely typed value into a finite float.

    Empty, missing, unparseable and non-finite values return 0.0.
    """
    if value is None or isinstance(value, bool):
        return float(value or 0)
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def to_non_negative(value: Any) -> float:
    """Coerce to a finite float and clamp at zero."""
    return max(0.0, to_number(value))


def to_count(value: Any) -> int:
    """Coerce to a non-negative whole count, truncating fractions."""
    return int(math.floor(to_non_negative(value)))


def is_available(value: float) -> bool:
    """True when a computed value is a real, finite number."""
    return value is not None and math.isfinite(value)


def round2(value: float) -> float:
    """
    Round half-up to 2 decimal places.

    Goes through Decimal on the repr so 1.005 rounds to 1.01 rather than
    the binary-float 1.0. Non-finite values pass through unchanged.
    """
    if not is_available(value):
        return value
    try:
        rounded = Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return value
    return float(rounded)


def safe_divide(numerator: float, denominator: float) -> float:
    """Divide, returning NOT_AVAILABLE for a non-positive denominator."""
    if not is_available(numerator) or not is_available(denominator):
        return NOT_AVAILABLE
    if denominator <= 0:
        return NOT_AVAILABLE
    return numerator / denominator


def convert_carry_costs(
    values: Dict[str, Any], from_mode: str, to_mode: str
) -> Dict[str, Any]:
    """
    Convert taxes/insurance/HOA between monthly and annual display units.

    Args:
        values: Mapping holding the carry-cost keys (other keys pass through)
        from_mode: "monthly" or "annual"
        to_mode: "monthly" or "annual"

    Returns:
        New mapping with each carry-cost field converted by a factor of 12
        and rounded to 2 decimals. Rent is never converted.
    """
    for mode in (from_mode, to_mode):
        if mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {mode!r}")

    updated = dict(values)
    if from_mode == to_mode:
        return updated

    for field in CARRY_COST_FIELDS:
        if field not in updated:
            continue
        amount = to_number(updated[field])
        if to_mode == "annual":
            updated[field] = round2(amount * MONTHS_PER_YEAR)
        else:
            updated[field] = round2(amount / MONTHS_PER_YEAR)

    return updated
