"""
Flip Evaluator

Computes the capital at risk for a buy-fix-resell deal: carrying costs
over the hold period, the loan balance still owed at resale, total losses
and the resulting ROI, plus the resale prices needed for target ROIs.

Interest-only financing covers the first 12 months. Past that point the
balance amortizes with the standard payment on the full principal for the
remaining months.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from pat.calculations.amortization import (
    calculate_interest_only_payment,
    calculate_payment,
    calculate_remaining_balance,
)
from pat.calculations.banding import Band, band_roi
from pat.calculations.numeric import (
    CLOSING_COSTS_RATE,
    DEFAULT_LOAN_LENGTH_YEARS,
    MISC_RATE_ANNUAL,
    NOT_AVAILABLE,
    is_available,
    safe_divide,
    to_count,
    to_non_negative,
    to_number,
)

logger = logging.getLogger(__name__)

INTEREST_ONLY_MONTHS = 12
ROI_TARGETS = (0.40, 0.30, 0.20, 0.10)


class FlipInput(BaseModel):
    """
    Flip inputs.

    Coercion follows EvaluationInput. Months held is truncated to a whole
    number; a blank, zero or unparseable resale value is treated as not
    provided, which leaves ROI unavailable.
    """

    model_config = ConfigDict(extra="ignore")

    property_value: float = 0.0
    percent_down_pct: float = 0.0
    rate_apr_pct: float = 0.0
    loan_length_years: float = DEFAULT_LOAN_LENGTH_YEARS
    est_fixing_cost: float = 0.0
    taxes_monthly: float = 0.0
    insurance_monthly: float = 0.0
    hoa_monthly: float = 0.0
    months_hold: int = 0
    desired_resale_value: Optional[float] = None
    interest_only_first_year: bool = False

    @field_validator(
        "property_value",
        "rate_apr_pct",
        "est_fixing_cost",
        "taxes_monthly",
        "insurance_monthly",
        "hoa_monthly",
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

    @field_validator("months_hold", mode="before")
    @classmethod
    def _coerce_months(cls, value: Any) -> int:
        return to_count(value)

    @field_validator("desired_resale_value", mode="before")
    @classmethod
    def _coerce_resale(cls, value: Any) -> Optional[float]:
        resale = to_number(value)
        return resale if resale > 0 else None

    @field_validator("interest_only_first_year", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if value is None or value == "":
            return False
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)


@dataclass
class FlipResult:
    """Computed figures for one flip evaluation."""

    down_payment: float
    closing_costs: float
    loan_amount: float
    misc_monthly: float
    mortgage_monthly: float
    operating_expenses_monthly: float
    ownership_cost_monthly: float
    est_fixing_cost: float
    months_hold: int
    remaining_loan_balance: float
    loan_counted_in_losses: float
    holding_loss: float
    total_losses: float
    desired_resale_value: float
    net_income: float
    roi: float
    interest_only_first_year: bool
    target_resale_value: Dict[str, float] = field(default_factory=dict)
    roi_band: Band = Band.not_available

    @property
    def has_valid_kpis(self) -> bool:
        return is_available(self.roi)


def remaining_balance_after_hold(
    loan_amount: float,
    monthly_rate: float,
    payment_count: float,
    months_hold: int,
    interest_only_first_year: bool,
) -> float:
    """
    Loan balance still owed after the hold period.

    Interest-only loans owe the full principal through month 12, then
    amortize with the standard payment for the months beyond it.
    """
    if not interest_only_first_year:
        return calculate_remaining_balance(
            loan_amount, monthly_rate, payment_count, months_hold
        )

    if months_hold <= INTEREST_ONLY_MONTHS:
        return loan_amount

    return calculate_remaining_balance(
        loan_amount, monthly_rate, payment_count, months_hold - INTEREST_ONLY_MONTHS
    )


def target_resale_value(total_losses: float, target_roi: float) -> float:
    """Resale price at which ROI would equal the target."""
    if not is_available(total_losses) or total_losses <= 0:
        return NOT_AVAILABLE
    return total_losses * (1 + target_roi)


def target_key(target_roi: float) -> str:
    return f"roi_{round(target_roi * 100)}"


def evaluate(inputs: FlipInput) -> FlipResult:
    """
    Evaluate a flip.

    Args:
        inputs: Validated flip inputs (monthly carry costs)

    Returns:
        FlipResult with total losses, ROI, its band and target resale prices
    """
    property_value = inputs.property_value
    months = inputs.months_hold

    down_payment = property_value * inputs.percent_down_pct / 100
    loan_amount = max(0.0, property_value - down_payment)
    closing_costs = property_value * CLOSING_COSTS_RATE
    misc_monthly = property_value * MISC_RATE_ANNUAL / 12

    monthly_rate = inputs.rate_apr_pct / 100 / 12
    payment_count = inputs.loan_length_years * 12

    if inputs.interest_only_first_year:
        mortgage_monthly = calculate_interest_only_payment(loan_amount, monthly_rate)
    else:
        mortgage_monthly = calculate_payment(loan_amount, monthly_rate, payment_count)

    operating_expenses_monthly = (
        inputs.taxes_monthly + inputs.insurance_monthly + inputs.hoa_monthly + misc_monthly
    )
    ownership_cost_monthly = operating_expenses_monthly + mortgage_monthly

    remaining_balance = remaining_balance_after_hold(
        loan_amount,
        monthly_rate,
        payment_count,
        months,
        inputs.interest_only_first_year,
    )
    if inputs.interest_only_first_year and months <= INTEREST_ONLY_MONTHS:
        loan_counted = loan_amount
    else:
        loan_counted = remaining_balance

    holding_loss = ownership_cost_monthly * months
    total_losses = (
        down_payment + closing_costs + loan_counted + inputs.est_fixing_cost + holding_loss
    )

    if inputs.desired_resale_value is None:
        desired_resale = NOT_AVAILABLE
        net_income = NOT_AVAILABLE
    else:
        desired_resale = inputs.desired_resale_value
        net_income = desired_resale - total_losses

    roi = safe_divide(net_income, total_losses)

    targets = {
        target_key(target): target_resale_value(total_losses, target)
        for target in ROI_TARGETS
    }

    logger.debug(
        "Evaluated flip: value=%s months=%s total_losses=%s roi=%s",
        property_value,
        months,
        total_losses,
        roi,
    )

    return FlipResult(
        down_payment=down_payment,
        closing_costs=closing_costs,
        loan_amount=loan_amount,
        misc_monthly=misc_monthly,
        mortgage_monthly=mortgage_monthly,
        operating_expenses_monthly=operating_expenses_monthly,
        ownership_cost_monthly=ownership_cost_monthly,
        est_fixing_cost=inputs.est_fixing_cost,
        months_hold=months,
        remaining_loan_balance=remaining_balance,
        loan_counted_in_losses=loan_counted,
        holding_loss=holding_loss,
        total_losses=total_losses,
        desired_resale_value=desired_resale,
        net_income=net_income,
        roi=roi,
        interest_only_first_year=inputs.interest_only_first_year,
        target_resale_value=targets,
        roi_band=band_roi(roi),
    )
