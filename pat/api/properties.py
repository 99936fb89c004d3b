"""
Property catalogue API endpoints.
"""

import logging
from datetime import datetime
from pathlib import Path

from fastapi import APIRouter, HTTPException, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel
from typing import Any, Dict, List, Literal, Optional
from sqlalchemy.orm import Session

from pat.calculations.banding import Band
from pat.config import get_settings
from pat.db.database import get_db
from pat.db.models import CatalogueProperty
from pat.services import catalogue
from pat.ui import formatting

logger = logging.getLogger(__name__)

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "ui" / "templates"))
templates.env.filters["money"] = formatting.format_money
templates.env.filters["pct"] = formatting.format_pct
templates.env.filters["ratio"] = formatting.format_ratio
templates.env.filters["band_class"] = formatting.band_class


class SourceInfo(BaseModel):
    """Where the property came from."""

    address: str = ""
    link: str = ""
    entry_mode: str = "manual"


class PropertyCreate(BaseModel):
    """Schema for adding a property to the catalogue."""

    module: Literal["income-property", "flip"]
    address: str = ""
    link: str = ""
    entry_mode: str = "manual"
    comments: str = ""
    inputs: Dict[str, Any] = {}


class PropertyUpdate(BaseModel):
    """Schema for re-editing a catalogued property."""

    address: Optional[str] = None
    link: Optional[str] = None
    comments: Optional[str] = None
    inputs: Optional[Dict[str, Any]] = None


class PropertyResponse(BaseModel):
    """Schema for property response."""

    id: str
    module: str
    source: SourceInfo
    inputs: Dict[str, Any]
    computed: Dict[str, Any]
    bands: Dict[str, str]
    comments: str = ""
    pinned: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PropertyListResponse(BaseModel):
    """Response for listing properties."""

    properties: List[PropertyResponse]
    total: int


class PinRequest(BaseModel):
    """Pin or unpin a selection of properties."""

    ids: List[str]
    pinned: bool = True


def property_to_dict(prop: CatalogueProperty) -> Dict[str, Any]:
    """Flatten an ORM row into the plain record the catalogue service works on."""
    return {
        "id": prop.id,
        "module": prop.module,
        "source_address": prop.source_address or "",
        "source_link": prop.source_link or "",
        "entry_mode": prop.entry_mode or "manual",
        "inputs": prop.inputs or {},
        "computed": prop.computed or {},
        "bands": prop.bands or {},
        "comments": prop.comments or "",
        "pinned": bool(prop.pinned),
        "created_at": prop.created_at.isoformat() if prop.created_at else None,
        "updated_at": prop.updated_at.isoformat() if prop.updated_at else None,
    }


def record_to_response(record: Dict[str, Any]) -> PropertyResponse:
    """Convert a catalogue record to the response schema, re-banding KPIs."""
    return PropertyResponse(
        id=record["id"],
        module=record["module"],
        source=SourceInfo(
            address=record["source_address"],
            link=record["source_link"],
            entry_mode=record["entry_mode"],
        ),
        inputs=record["inputs"],
        computed=record["computed"],
        bands=catalogue.rebands(record["module"], record["computed"]),
        comments=record["comments"],
        pinned=record["pinned"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


def _active_records(db: Session) -> List[Dict[str, Any]]:
    rows = db.query(CatalogueProperty).filter(CatalogueProperty.is_deleted == False).all()
    return [property_to_dict(p) for p in rows]


def _get_active(db: Session, property_id: str) -> CatalogueProperty:
    db_property = (
        db.query(CatalogueProperty)
        .filter(CatalogueProperty.id == property_id, CatalogueProperty.is_deleted == False)
        .first()
    )
    if not db_property:
        raise HTTPException(status_code=404, detail="Property not found")
    return db_property


def _build_record(module: str, inputs: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return catalogue.build_record(module, inputs)
    except catalogue.CatalogueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _filtered(
    db: Session,
    module: Optional[str],
    band: Optional[Band],
    q: Optional[str],
) -> List[Dict[str, Any]]:
    return catalogue.filter_records(_active_records(db), module=module, band=band, query=q)


@router.get("/", response_model=PropertyListResponse)
async def list_properties(
    module: Optional[Literal["income-property", "flip"]] = None,
    band: Optional[Band] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """List catalogued properties, pinned first, with optional filters."""
    records = _filtered(db, module, band, q)
    return PropertyListResponse(
        properties=[record_to_response(r) for r in records],
        total=len(records),
    )


@router.post("/", response_model=PropertyResponse, status_code=201)
async def create_property(
    property_data: PropertyCreate,
    db: Session = Depends(get_db),
):
    """Evaluate and add a property to the catalogue."""
    duplicate = catalogue.find_duplicate(_active_records(db), property_data.address)
    if duplicate:
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Property already in catalogue",
                "id": duplicate["id"],
            },
        )

    record = _build_record(property_data.module, property_data.inputs)

    db_property = CatalogueProperty(
        module=record["module"],
        source_address=property_data.address,
        source_link=property_data.link,
        entry_mode=property_data.entry_mode,
        inputs=record["inputs"],
        computed=record["computed"],
        bands=record["bands"],
        comments=property_data.comments,
        pinned=False,
    )

    db.add(db_property)
    db.commit()
    db.refresh(db_property)

    logger.info("Added %s property %s", db_property.module, db_property.id)
    return record_to_response(property_to_dict(db_property))


@router.delete("/")
async def clear_catalogue(db: Session = Depends(get_db)):
    """Soft delete every property in the catalogue."""
    count = (
        db.query(CatalogueProperty)
        .filter(CatalogueProperty.is_deleted == False)
        .update({CatalogueProperty.is_deleted: True}, synchronize_session=False)
    )
    db.commit()

    logger.info("Cleared catalogue (%d properties)", count)
    return {"deleted": count}


@router.post("/pin")
async def pin_properties(
    pin_data: PinRequest,
    db: Session = Depends(get_db),
):
    """Pin or unpin the selected properties."""
    if not pin_data.ids:
        raise HTTPException(status_code=400, detail="Select at least one property")

    rows = (
        db.query(CatalogueProperty)
        .filter(CatalogueProperty.id.in_(pin_data.ids), CatalogueProperty.is_deleted == False)
        .all()
    )
    now = datetime.utcnow()
    for row in rows:
        row.pinned = pin_data.pinned
        row.updated_at = now
    db.commit()

    return {"updated": [row.id for row in rows], "pinned": pin_data.pinned}


@router.get("/duplicate")
async def find_duplicate_property(
    address: str,
    exclude_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Look up an existing property with the same street address."""
    duplicate = catalogue.find_duplicate(_active_records(db), address, exclude_id=exclude_id)
    return {"duplicate": duplicate is not None, "id": duplicate["id"] if duplicate else None}


@router.get("/export")
async def export_properties(
    module: Optional[Literal["income-property", "flip"]] = None,
    band: Optional[Band] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Export the filtered catalogue as JSON."""
    settings = get_settings()
    records = _filtered(db, module, band, q)
    return catalogue.export_payload(records, settings.catalogue_schema_version)


@router.get("/print", response_class=HTMLResponse)
async def print_properties(
    request: Request,
    module: Optional[Literal["income-property", "flip"]] = None,
    band: Optional[Band] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Printable catalogue page (use the browser's Save as PDF)."""
    records = [record_to_response(r) for r in _filtered(db, module, band, q)]
    return templates.TemplateResponse(
        request,
        "catalogue_print.html",
        {
            "title": get_settings().app_name,
            "properties": records,
            "generated_at": datetime.utcnow(),
        },
    )


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: str,
    db: Session = Depends(get_db),
):
    """Get a property by ID."""
    return record_to_response(property_to_dict(_get_active(db, property_id)))


@router.put("/{property_id}", response_model=PropertyResponse)
async def update_property(
    property_id: str,
    property_data: PropertyUpdate,
    db: Session = Depends(get_db),
):
    """Re-edit a property; new inputs are re-evaluated before saving."""
    db_property = _get_active(db, property_id)

    if property_data.inputs is not None:
        record = _build_record(db_property.module, property_data.inputs)
        db_property.inputs = record["inputs"]
        db_property.computed = record["computed"]
        db_property.bands = record["bands"]

    if property_data.address is not None:
        db_property.source_address = property_data.address
    if property_data.link is not None:
        db_property.source_link = property_data.link
    if property_data.comments is not None:
        db_property.comments = property_data.comments

    db_property.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(db_property)

    logger.info("Updated %s property %s", db_property.module, db_property.id)
    return record_to_response(property_to_dict(db_property))


@router.delete("/{property_id}")
async def delete_property(
    property_id: str,
    db: Session = Depends(get_db),
):
    """Soft delete a property."""
    db_property = _get_active(db, property_id)

    db_property.is_deleted = True
    db.commit()

    logger.info("Deleted property %s", property_id)
    return {"deleted": True, "id": property_id}
