"""
Deal calculation API endpoints.

Stateless: each request evaluates the posted inputs and returns the
figures. Values that are not available come back as null.
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional, Union
from datetime import date

from pat.calculations import amortization, flip, income_property
from pat.calculations.numeric import CARRY_COST_FIELDS, convert_carry_costs, to_number
from pat.services.catalogue import jsonable

router = APIRouter()


@router.post("/income-property")
async def evaluate_income_property(inputs: income_property.EvaluationInput):
    """Evaluate an income property (cap rate, cash-on-cash, DSCR)."""
    result = income_property.evaluate(inputs)
    response = jsonable(result)
    response["has_valid_kpis"] = result.has_valid_kpis
    return response


@router.post("/flip")
async def evaluate_flip(inputs: flip.FlipInput):
    """Evaluate a flip (total losses, ROI, target resale prices)."""
    result = flip.evaluate(inputs)
    response = jsonable(result)
    response["has_valid_kpis"] = result.has_valid_kpis
    return response


class CarryCostInput(BaseModel):
    """Carry costs in the units of from_mode."""

    taxes_monthly: Union[float, str, None] = None
    insurance_monthly: Union[float, str, None] = None
    hoa_monthly: Union[float, str, None] = None
    from_mode: str = "monthly"
    to_mode: str = "annual"


@router.post("/carry-costs")
async def convert_carry_cost_units(inputs: CarryCostInput):
    """Convert taxes/insurance/HOA between monthly and annual display units."""
    values = {
        field: to_number(getattr(inputs, field)) for field in CARRY_COST_FIELDS
    }
    try:
        converted = convert_carry_costs(values, inputs.from_mode, inputs.to_mode)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"mode": inputs.to_mode, **converted}


class AmortizationInput(BaseModel):
    """Input for amortization calculation."""

    principal: float
    annual_rate: float
    amortization_years: int = 30
    io_months: int = 0
    total_months: Optional[int] = None
    start_date: Optional[date] = None


@router.post("/amortization")
async def calculate_amortization(inputs: AmortizationInput):
    """Generate loan amortization schedule."""
    schedule = amortization.generate_amortization_schedule(
        principal=inputs.principal,
        annual_rate=inputs.annual_rate,
        amortization_months=inputs.amortization_years * 12,
        io_months=inputs.io_months,
        total_months=inputs.total_months,
        start_date=inputs.start_date,
    )

    return {
        "schedule": schedule,
        "total_interest": amortization.calculate_total_interest(schedule),
        "total_principal": sum(row["principal"] for row in schedule),
    }
