"""
Loan Amortization Calculations

Monthly payment, remaining balance and schedule helpers shared by the
income-property and flip evaluators. Rates are periodic (monthly) decimals
unless the argument name says annual.
"""

import math
from typing import List, Dict, Optional
from datetime import date
from dateutil.relativedelta import relativedelta

from pat.calculations.numeric import NOT_AVAILABLE


def calculate_payment(
    principal: float, monthly_rate: float, payment_count: int
) -> float:
    """
    Calculate the level monthly payment of an amortizing loan.

    PMT = r * L / (1 - (1 + r)^-n). A zero rate spreads the principal evenly.

    Args:
        principal: Loan principal amount
        monthly_rate: Periodic rate as decimal (e.g., 0.005 for 6% APR)
        payment_count: Number of monthly payments

    Returns:
        Monthly payment amount, 0.0 when there is nothing to amortize
    """
    if principal <= 0:
        return 0.0
    if payment_count <= 0:
        return 0.0

    if monthly_rate == 0:
        return principal / payment_count

    denominator = 1 - (1 + monthly_rate) ** (-payment_count)
    if denominator == 0:
        return 0.0

    return monthly_rate * principal / denominator


def calculate_interest_only_payment(principal: float, monthly_rate: float) -> float:
    """Monthly payment covering interest only."""
    if principal <= 0:
        return 0.0
    return principal * monthly_rate


def calculate_remaining_balance(
    principal: float,
    monthly_rate: float,
    payment_count: int,
    payments_made: int,
) -> float:
    """
    Calculate the remaining loan balance after N level payments.

    B(m) = L(1+r)^m - PMT * ((1+r)^m - 1) / r

    The balance is left at the full principal when the loan carries no
    interest, has no amortization term, or no payment has been made yet.
    Returns NOT_AVAILABLE when the growth factor overflows a float.
    """
    if monthly_rate <= 0 or payment_count <= 0 or payments_made <= 0:
        return principal

    payment = calculate_payment(principal, monthly_rate, payment_count)
    try:
        growth = (1 + monthly_rate) ** payments_made
    except OverflowError:
        return NOT_AVAILABLE
    balance = principal * growth - payment * ((growth - 1) / monthly_rate)
    if not math.isfinite(balance):
        return NOT_AVAILABLE

    return max(0.0, balance)


def calculate_principal_for_payment(
    payment: float, monthly_rate: float, payment_count: int
) -> float:
    """
    Solve for the loan principal a given monthly payment will amortize.

    Inverse of calculate_payment: L = PMT * (1 - (1 + r)^-n) / r.

    Returns:
        Principal amount, or NOT_AVAILABLE when the amortization
        denominator collapses to zero
    """
    if monthly_rate == 0:
        return payment * payment_count

    denominator = 1 - (1 + monthly_rate) ** (-payment_count)
    if denominator == 0:
        return NOT_AVAILABLE

    return payment * denominator / monthly_rate


def generate_amortization_schedule(
    principal: float,
    annual_rate: float,
    amortization_months: int,
    io_months: int = 0,
    total_months: Optional[int] = None,
    start_date: Optional[date] = None,
) -> List[Dict]:
    """
    Generate a month-by-month amortization schedule.

    During the interest-only months the balance is untouched; afterwards the
    level payment is the standard payment on the full principal over the
    amortization term, matching how the flip evaluator counts balances.

    Args:
        principal: Loan principal amount
        annual_rate: Annual interest rate as decimal
        amortization_months: Amortization period in months
        io_months: Interest-only period in months
        total_months: Number of rows to produce (defaults to io + amortization)
        start_date: Date of first payment

    Returns:
        List of amortization rows
    """
    schedule = []
    balance = principal
    monthly_rate = annual_rate / 12
    amortizing_payment = calculate_payment(principal, monthly_rate, amortization_months)

    if total_months is None:
        total_months = io_months + amortization_months

    if start_date is None:
        start_date = date.today()

    for period in range(1, total_months + 1):
        period_date = start_date + relativedelta(months=period - 1)

        interest = balance * monthly_rate

        if period <= io_months:
            principal_pmt = 0.0
            payment = interest
        else:
            principal_pmt = max(0.0, min(amortizing_payment - interest, balance))
            payment = principal_pmt + interest

        ending_balance = balance - principal_pmt

        schedule.append(
            {
                "period": period,
                "date": period_date.isoformat(),
                "beginning_balance": round(balance, 2),
                "payment": round(payment, 2),
                "interest": round(interest, 2),
                "principal": round(principal_pmt, 2),
                "ending_balance": round(max(0, ending_balance), 2),
            }
        )

        balance = max(0.0, ending_balance)

        if balance == 0:
            break

    return schedule


def calculate_total_interest(schedule: List[Dict]) -> float:
    """Calculate total interest paid over the schedule."""
    return sum(row["interest"] for row in schedule)
