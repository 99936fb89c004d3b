"""
Display formatting for catalogue pages.

The calculation engine only produces numbers; this is where unavailable
values become "N/A".
"""

import math
from typing import Optional

from pat.calculations.banding import Band
from pat.calculations.numeric import round2

NOT_AVAILABLE_LABEL = "N/A"


def _missing(value: Optional[float]) -> bool:
    return value is None or not math.isfinite(value)


def format_money(value: Optional[float]) -> str:
    """$1,234.57 style currency."""
    if _missing(value):
        return NOT_AVAILABLE_LABEL
    amount = round2(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_pct(value: Optional[float]) -> str:
    """Ratio as a percentage with 2 decimals (0.096 -> 9.60%)."""
    if _missing(value):
        return NOT_AVAILABLE_LABEL
    return f"{round2(value * 100):.2f}%"


def format_ratio(value: Optional[float]) -> str:
    """Plain ratio with 2 decimals, used for DSCR."""
    if _missing(value):
        return NOT_AVAILABLE_LABEL
    return f"{round2(value):.2f}"


def band_class(label: Optional[str]) -> str:
    """CSS class for a stored band label; unknown labels style as N/A."""
    try:
        return Band(label).css_class
    except ValueError:
        return Band.not_available.css_class
