"""
Catalogue service.

Folds evaluator output into the stored record shape and implements the
catalogue's browse operations (filter, search, sort, duplicate lookup,
export). Records are plain dicts; persistence lives in pat.db.

Monetary figures are rounded to cents before storage. Ratios and
reverse-solved guidance are stored at full precision. Values that are not
available are stored as null.
"""

import dataclasses
import enum
import logging
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel

from pat.calculations import flip, income_property
from pat.calculations.banding import (
    Band,
    band_cap_rate,
    band_cash_on_cash,
    band_dscr,
    band_roi,
)
from pat.calculations.numeric import CLOSING_COSTS_RATE, MISC_RATE_ANNUAL, round2
from pat.services.address import address_key, parse_address

logger = logging.getLogger(__name__)

MODULE_INCOME_PROPERTY = "income-property"
MODULE_FLIP = "flip"
MODULES = (MODULE_INCOME_PROPERTY, MODULE_FLIP)

InputModel = Union[income_property.EvaluationInput, flip.FlipInput]
ResultModel = Union[income_property.EvaluationResult, flip.FlipResult]


class CatalogueError(ValueError):
    """Raised when a record cannot be built from the given inputs."""


def jsonable(value: Any) -> Any:
    """
    Convert evaluator output into JSON-safe primitives.

    Dataclasses become dicts, bands become their labels and non-finite
    floats become None.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _money(value: float) -> Optional[float]:
    return jsonable(round2(value))


def parse_inputs(module: str, raw_inputs: Dict[str, Any]) -> InputModel:
    """Build the validated input model for a catalogue module."""
    if module == MODULE_INCOME_PROPERTY:
        return income_property.EvaluationInput.model_validate(raw_inputs or {})
    if module == MODULE_FLIP:
        return flip.FlipInput.model_validate(raw_inputs or {})
    raise CatalogueError(f"Unknown module: {module!r}")


def evaluate_inputs(module: str, raw_inputs: Dict[str, Any]) -> Tuple[InputModel, ResultModel]:
    """Validate raw inputs and run the matching evaluator."""
    inputs = parse_inputs(module, raw_inputs)
    if module == MODULE_INCOME_PROPERTY:
        return inputs, income_property.evaluate(inputs)
    return inputs, flip.evaluate(inputs)


def missing_required_inputs(module: str, inputs: InputModel) -> List[str]:
    """
    Names of the inputs a record needs before it can be saved.

    Income properties need a value, units and rent; flips need a value.
    """
    missing = []
    if inputs.property_value <= 0:
        missing.append("property_value")
    if module == MODULE_INCOME_PROPERTY:
        if inputs.unit_count <= 0:
            missing.append("unit_count")
        if inputs.rent_per_unit_monthly <= 0:
            missing.append("rent_per_unit_monthly")
    return missing


def _stored_inputs(inputs: BaseModel) -> Dict[str, Any]:
    stored = inputs.model_dump()
    stored["closing_costs_rate"] = CLOSING_COSTS_RATE
    stored["misc_rate_annual"] = MISC_RATE_ANNUAL
    return stored


def build_income_property_record(
    inputs: income_property.EvaluationInput,
    result: income_property.EvaluationResult,
) -> Dict[str, Any]:
    """Fold an income-property evaluation into the stored record shape."""
    computed = {
        "mortgage_monthly": _money(result.mortgage_monthly),
        "gross_rent_monthly": _money(result.gross_rent_monthly),
        "operating_expenses_monthly": _money(result.operating_expenses_monthly),
        "ownership_cost_monthly": _money(result.ownership_cost_monthly),
        "annual_cash_flow": _money(result.annual_cash_flow),
        "noi_annual": _money(result.noi_annual),
        "cap_rate": jsonable(result.cap_rate),
        "cash_on_cash": jsonable(result.cash_on_cash),
        "dscr": jsonable(result.dscr),
        "dscr_guidance": jsonable(result.dscr_guidance),
        "suggested_rent_per_unit": jsonable(result.suggested_rent_per_unit),
    }
    return {
        "module": MODULE_INCOME_PROPERTY,
        "inputs": _stored_inputs(inputs),
        "computed": computed,
        "bands": jsonable(result.bands),
    }


def build_flip_record(
    inputs: flip.FlipInput,
    result: flip.FlipResult,
) -> Dict[str, Any]:
    """Fold a flip evaluation into the stored record shape."""
    computed = {
        "ownership_cost_monthly": _money(result.ownership_cost_monthly),
        "operating_expenses_monthly": _money(result.operating_expenses_monthly),
        "mortgage_monthly": _money(result.mortgage_monthly),
        "net_income": _money(result.net_income),
        "roi": jsonable(result.roi),
        "target_resale_value": jsonable(result.target_resale_value),
    }
    return {
        "module": MODULE_FLIP,
        "inputs": _stored_inputs(inputs),
        "computed": computed,
        "bands": {"roi": result.roi_band.label},
    }


def build_record(module: str, raw_inputs: Dict[str, Any]) -> Dict[str, Any]:
    """
    Evaluate raw inputs and build the record to store.

    Raises:
        CatalogueError: Unknown module or required inputs missing
    """
    inputs, result = evaluate_inputs(module, raw_inputs)

    missing = missing_required_inputs(module, inputs)
    if missing:
        logger.warning("Rejected %s record, missing inputs: %s", module, missing)
        raise CatalogueError(f"Missing required inputs: {', '.join(missing)}")

    if module == MODULE_INCOME_PROPERTY:
        return build_income_property_record(inputs, result)
    return build_flip_record(inputs, result)


def _as_float(value: Any) -> float:
    return math.nan if value is None else float(value)


def rebands(module: str, computed: Dict[str, Any]) -> Dict[str, str]:
    """
    Recompute band labels from stored KPI values.

    Stored labels are a display cache only.
    """
    computed = computed or {}
    if module == MODULE_FLIP:
        return {"roi": band_roi(_as_float(computed.get("roi"))).label}
    return {
        "cap_rate": band_cap_rate(_as_float(computed.get("cap_rate"))).label,
        "cash_on_cash": band_cash_on_cash(_as_float(computed.get("cash_on_cash"))).label,
        "dscr": band_dscr(_as_float(computed.get("dscr"))).label,
    }


def record_band_labels(record: Dict[str, Any]) -> List[str]:
    return list(rebands(record.get("module"), record.get("computed")).values())


def _sort_timestamp(record: Dict[str, Any]) -> datetime:
    stamp = record.get("updated_at") or record.get("created_at")
    if isinstance(stamp, str):
        return datetime.fromisoformat(stamp)
    return stamp or datetime.min


def sort_for_display(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Pinned records first, then most recently touched first."""
    return sorted(
        records,
        key=lambda r: (bool(r.get("pinned")), _sort_timestamp(r)),
        reverse=True,
    )


def filter_records(
    records: Iterable[Dict[str, Any]],
    module: Optional[str] = None,
    band: Optional[Union[Band, str]] = None,
    query: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Filter records by module, any KPI band and address search text.

    The search matches a case-insensitive substring of address line 1.
    """
    results = list(records)

    if module:
        results = [r for r in results if r.get("module") == module]

    if band:
        label = Band(band).label
        results = [r for r in results if label in record_band_labels(r)]

    q = (query or "").strip().lower()
    if q:
        results = [
            r
            for r in results
            if q in parse_address(r.get("source_address") or "").line1.lower()
        ]

    return sort_for_display(results)


def find_duplicate(
    records: Iterable[Dict[str, Any]],
    address: str,
    exclude_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """First record whose address matches, ignoring formatting differences."""
    key = address_key(address)
    if not key:
        return None
    for record in records:
        if exclude_id and record.get("id") == exclude_id:
            continue
        if address_key(record.get("source_address") or "") == key:
            return record
    return None


def export_payload(records: Iterable[Dict[str, Any]], schema_version: str) -> Dict[str, Any]:
    """JSON export body for a (filtered) list of records."""
    return {
        "schema_version": schema_version,
        "properties": [jsonable(r) for r in records],
    }
