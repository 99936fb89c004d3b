"""
KPI Banding

Maps each KPI value to a qualitative tier used for display styling.
Tables are evaluated top-down and the first matching threshold wins; the
top tier is strict (>), every other tier is inclusive on its lower bound.
Non-finite values are always N/A.
"""

import enum
import math
from typing import Dict, List, Optional, Tuple


class Band(str, enum.Enum):
    """Qualitative KPI tier."""

    negative = "Negative"
    bad = "Bad"
    okay = "Okay"
    good = "Good"
    great = "Great"
    amazing = "Amazing"
    not_available = "N/A"

    @property
    def label(self) -> str:
        return self.value

    @property
    def css_class(self) -> str:
        return BAND_CSS_CLASSES[self]


class KPIKind(str, enum.Enum):
    """KPIs that carry a band."""

    cap_rate = "cap_rate"
    cash_on_cash = "cash_on_cash"
    dscr = "dscr"
    roi = "roi"


BAND_CSS_CLASSES = {
    Band.negative: "bad",
    Band.bad: "bad",
    Band.okay: "okay",
    Band.good: "good",
    Band.great: "great",
    Band.amazing: "great",
    Band.not_available: "na",
}

BAND_ORDER = [Band.negative, Band.bad, Band.okay, Band.good, Band.great, Band.amazing]

# (lower bound, band) pairs, highest first. The first entry uses a strict >.
ThresholdTable = List[Tuple[float, Band]]

CAP_RATE_THRESHOLDS: ThresholdTable = [
    (0.12, Band.great),
    (0.08, Band.good),
    (0.05, Band.okay),
    (0.0, Band.bad),
]

CASH_ON_CASH_THRESHOLDS: ThresholdTable = [
    (0.07, Band.great),
    (0.05, Band.good),
    (0.03, Band.okay),
    (0.0, Band.bad),
]

# No Good tier for DSCR
DSCR_THRESHOLDS: ThresholdTable = [
    (1.36, Band.great),
    (1.21, Band.okay),
    (0.0, Band.bad),
]

ROI_THRESHOLDS: ThresholdTable = [
    (0.40, Band.amazing),
    (0.30, Band.great),
    (0.20, Band.good),
    (0.10, Band.okay),
    (0.0, Band.bad),
]

THRESHOLDS: Dict[KPIKind, ThresholdTable] = {
    KPIKind.cap_rate: CAP_RATE_THRESHOLDS,
    KPIKind.cash_on_cash: CASH_ON_CASH_THRESHOLDS,
    KPIKind.dscr: DSCR_THRESHOLDS,
    KPIKind.roi: ROI_THRESHOLDS,
}

# Band for values below the lowest threshold
BELOW_TABLE: Dict[KPIKind, Band] = {
    KPIKind.cap_rate: Band.negative,
    KPIKind.cash_on_cash: Band.negative,
    KPIKind.dscr: Band.not_available,
    KPIKind.roi: Band.negative,
}


def _classify(value: Optional[float], table: ThresholdTable, below: Band) -> Band:
    if value is None or not math.isfinite(value):
        return Band.not_available

    top_bound, top_band = table[0]
    if value > top_bound:
        return top_band

    for lower_bound, band in table[1:]:
        if value >= lower_bound:
            return band

    return below


def band_for(kind: KPIKind, value: Optional[float]) -> Band:
    """Classify a KPI value by kind."""
    kind = KPIKind(kind)
    return _classify(value, THRESHOLDS[kind], BELOW_TABLE[kind])


def band_cap_rate(value: Optional[float]) -> Band:
    return band_for(KPIKind.cap_rate, value)


def band_cash_on_cash(value: Optional[float]) -> Band:
    return band_for(KPIKind.cash_on_cash, value)


def band_dscr(value: Optional[float]) -> Band:
    return band_for(KPIKind.dscr, value)


def band_roi(value: Optional[float]) -> Band:
    return band_for(KPIKind.roi, value)


def band_rank(band: Band) -> Optional[int]:
    """
    Position of a band in the tier order (Negative lowest).

    N/A sits outside the order and has no rank.
    """
    band = Band(band)
    if band is Band.not_available:
        return None
    return BAND_ORDER.index(band)
