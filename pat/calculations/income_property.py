"""
Income-Property Evaluator

Turns acquisition, financing, operating and rental inputs into the
mortgage payment, NOI, cash flow and the three rental KPIs (cap rate,
cash-on-cash, DSCR), plus reverse-solved guidance:

- purchase price that would hit a target DSCR (lender sizing on 85% NOI)
- rent per unit needed for target cash-on-cash and cap rates

The evaluator never raises for numeric input. Degenerate paths (zero
property value, zero investment, no mortgage, no units) leave only the
affected field as NOT_AVAILABLE.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from pat.calculations.amortization import (
    calculate_payment,
    calculate_principal_for_payment,
)
from pat.calculations.banding import (
    Band,
    band_cap_rate,
    band_cash_on_cash,
    band_dscr,
)
from pat.calculations.numeric import (
    CLOSING_COSTS_RATE,
    DEFAULT_LOAN_LENGTH_YEARS,
    DSCR_NOI_HAIRCUT,
    MISC_RATE_ANNUAL,
    NOT_AVAILABLE,
    is_available,
    safe_divide,
    to_count,
    to_non_negative,
    to_number,
)

logger = logging.getLogger(__name__)

DSCR_GUIDANCE_TARGETS = (1.5, 1.2)
COC_RENT_TARGETS = (0.07, 0.05, 0.03)
CAP_RENT_TARGETS = (0.12, 0.08, 0.05)


class EvaluationInput(BaseModel):
    """
    Income-property inputs.

    Construction normalizes everything: blanks and garbage become 0,
    negatives clamp to 0, percent down is capped at 100, unit count is
    truncated to a whole number and a missing loan term falls back to 30
    years. Carry costs must already be monthly.
    """

    model_config = ConfigDict(extra="ignore")

    property_value: float = 0.0
    percent_down_pct: float = 0.0
    rate_apr_pct: float = 0.0
    loan_length_years: float = DEFAULT_LOAN_LENGTH_YEARS
    taxes_monthly: float = 0.0
    insurance_monthly: float = 0.0
    hoa_monthly: float = 0.0
    est_improvement_cost: float = 0.0
    unit_count: int = 0
    rent_per_unit_monthly: float = 0.0

    @field_validator(
        "property_value",
        "rate_apr_pct",
        "taxes_monthly",
        "insurance_monthly",
        "hoa_monthly",
        "est_improvement_cost",
        "rent_per_unit_monthly",
        mode="before",
    )
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        return to_non_negative(value)

    @field_validator("percent_down_pct", mode="before")
    @classmethod
    def _coerce_percent(cls, value: Any) -> float:
        return min(100.0, to_non_negative(value))

    @field_validator("loan_length_years", mode="before")
    @classmethod
    def _coerce_loan_length(cls, value: Any) -> float:
        years = to_number(value)
        return years if years > 0 else float(DEFAULT_LOAN_LENGTH_YEARS)

    @field_validator("unit_count", mode="before")
    @classmethod
    def _coerce_units(cls, value: Any) -> int:
        return to_count(value)


@dataclass
class DSCRGuidance:
    """Purchase prices at which the deal would meet lender DSCR targets."""

    price_at_dscr_1_5: float = NOT_AVAILABLE
    price_at_dscr_1_2: float = NOT_AVAILABLE


@dataclass
class SuggestedRent:
    """Rent per unit needed to reach each target return."""

    coc_7: float = NOT_AVAILABLE
    coc_5: float = NOT_AVAILABLE
    coc_3: float = NOT_AVAILABLE
    cap_12: float = NOT_AVAILABLE
    cap_8: float = NOT_AVAILABLE
    cap_5: float = NOT_AVAILABLE


@dataclass
class IncomePropertyBands:
    cap_rate: Band = Band.not_available
    cash_on_cash: Band = Band.not_available
    dscr: Band = Band.not_available


@dataclass
class EvaluationResult:
    """Computed figures for one income-property evaluation."""

    # Normalized intermediates
    down_payment: float
    closing_costs: float
    loan_amount: float
    monthly_rate: float
    payment_count: float
    misc_monthly: float
    total_initial_investment: float

    # Monthly / annual figures
    mortgage_monthly: float
    gross_rent_monthly: float
    operating_expenses_monthly: float
    ownership_cost_monthly: float
    noi_annual: float
    annual_cash_flow: float

    # KPIs
    cap_rate: float
    cash_on_cash: float
    dscr: float

    dscr_guidance: DSCRGuidance = field(default_factory=DSCRGuidance)
    suggested_rent_per_unit: SuggestedRent = field(default_factory=SuggestedRent)
    bands: IncomePropertyBands = field(default_factory=IncomePropertyBands)

    @property
    def has_valid_kpis(self) -> bool:
        """All three KPIs are finite (the form holds a usable deal)."""
        return all(
            is_available(v) for v in (self.cap_rate, self.cash_on_cash, self.dscr)
        )


def price_for_target_dscr(
    target_dscr: float,
    noi_annual: float,
    monthly_rate: float,
    payment_count: float,
    percent_down: float,
) -> float:
    """
    Purchase price at which the loan's debt service meets a target DSCR.

    Debt service is sized against a haircut NOI, the supportable payment
    is converted back to a principal, and the principal is grossed up by
    the equity fraction.

    Args:
        target_dscr: Target coverage ratio (e.g., 1.2)
        noi_annual: Annual net operating income
        monthly_rate: Periodic loan rate as decimal
        payment_count: Number of monthly payments
        percent_down: Down payment fraction (0.2 for 20%)

    Returns:
        Purchase price, or NOT_AVAILABLE when the target, amortization or
        equity fraction make the solve meaningless or the price negative
    """
    if target_dscr <= 0:
        return NOT_AVAILABLE

    annual_debt_service = DSCR_NOI_HAIRCUT * noi_annual / target_dscr
    target_payment = annual_debt_service / 12

    loan_target = calculate_principal_for_payment(
        target_payment, monthly_rate, payment_count
    )
    if not is_available(loan_target):
        return NOT_AVAILABLE

    equity_fraction = 1 - percent_down
    if equity_fraction <= 0:
        return NOT_AVAILABLE

    price = loan_target / equity_fraction
    if not is_available(price) or price < 0:
        return NOT_AVAILABLE
    return price


def rent_per_unit_for_cash_on_cash(
    target: float,
    total_initial_investment: float,
    operating_expenses_monthly: float,
    mortgage_monthly: float,
    unit_count: int,
) -> float:
    """Rent per unit that yields the target cash-on-cash return."""
    if unit_count <= 0:
        return NOT_AVAILABLE
    numerator = target * total_initial_investment + 12 * (
        operating_expenses_monthly + mortgage_monthly
    )
    return safe_divide(numerator, 12 * unit_count)


def rent_per_unit_for_cap_rate(
    target: float,
    property_value: float,
    operating_expenses_monthly: float,
    unit_count: int,
) -> float:
    """Rent per unit that yields the target cap rate."""
    if unit_count <= 0:
        return NOT_AVAILABLE
    numerator = target * property_value + 12 * operating_expenses_monthly
    return safe_divide(numerator, 12 * unit_count)


def evaluate(inputs: EvaluationInput) -> EvaluationResult:
    """
    Evaluate an income property.

    Args:
        inputs: Validated income-property inputs (monthly carry costs)

    Returns:
        EvaluationResult with KPIs, guidance values and bands
    """
    property_value = inputs.property_value
    percent_down = inputs.percent_down_pct / 100
    units = inputs.unit_count

    # Normalize
    down_payment = property_value * percent_down
    closing_costs = property_value * CLOSING_COSTS_RATE
    loan_amount = max(0.0, property_value - down_payment)
    monthly_rate = inputs.rate_apr_pct / 100 / 12
    payment_count = inputs.loan_length_years * 12
    misc_monthly = property_value * MISC_RATE_ANNUAL / 12

    mortgage_monthly = calculate_payment(loan_amount, monthly_rate, payment_count)

    gross_rent_monthly = units * inputs.rent_per_unit_monthly
    operating_expenses_monthly = (
        inputs.taxes_monthly + inputs.insurance_monthly + inputs.hoa_monthly + misc_monthly
    )
    ownership_cost_monthly = operating_expenses_monthly + mortgage_monthly

    noi_annual = (gross_rent_monthly - operating_expenses_monthly) * 12
    annual_cash_flow = (gross_rent_monthly - ownership_cost_monthly) * 12
    total_initial_investment = down_payment + inputs.est_improvement_cost + closing_costs

    cap_rate = safe_divide(noi_annual, property_value)
    cash_on_cash = safe_divide(annual_cash_flow, total_initial_investment)
    dscr = safe_divide(noi_annual, mortgage_monthly * 12)

    dscr_guidance = DSCRGuidance(
        *(
            price_for_target_dscr(
                target, noi_annual, monthly_rate, payment_count, percent_down
            )
            for target in DSCR_GUIDANCE_TARGETS
        )
    )

    coc_rents = [
        rent_per_unit_for_cash_on_cash(
            target,
            total_initial_investment,
            operating_expenses_monthly,
            mortgage_monthly,
            units,
        )
        for target in COC_RENT_TARGETS
    ]
    cap_rents = [
        rent_per_unit_for_cap_rate(
            target, property_value, operating_expenses_monthly, units
        )
        for target in CAP_RENT_TARGETS
    ]
    suggested_rent = SuggestedRent(*coc_rents, *cap_rents)

    bands = IncomePropertyBands(
        cap_rate=band_cap_rate(cap_rate),
        cash_on_cash=band_cash_on_cash(cash_on_cash),
        dscr=band_dscr(dscr),
    )

    logger.debug(
        "Evaluated income property: value=%s cap=%s coc=%s dscr=%s",
        property_value,
        cap_rate,
        cash_on_cash,
        dscr,
    )

    return EvaluationResult(
        down_payment=down_payment,
        closing_costs=closing_costs,
        loan_amount=loan_amount,
        monthly_rate=monthly_rate,
        payment_count=payment_count,
        misc_monthly=misc_monthly,
        total_initial_investment=total_initial_investment,
        mortgage_monthly=mortgage_monthly,
        gross_rent_monthly=gross_rent_monthly,
        operating_expenses_monthly=operating_expenses_monthly,
        ownership_cost_monthly=ownership_cost_monthly,
        noi_annual=noi_annual,
        annual_cash_flow=annual_cash_flow,
        cap_rate=cap_rate,
        cash_on_cash=cash_on_cash,
        dscr=dscr,
        dscr_guidance=dscr_guidance,
        suggested_rent_per_unit=suggested_rent,
        bands=bands,
    )
