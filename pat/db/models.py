"""
SQLAlchemy ORM models for the property catalogue.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    JSON,
    Text,
)
from sqlalchemy.orm import declarative_base
import uuid

Base = declarative_base()


def generate_uuid():
    return str(uuid.uuid4())


class AuditMixin:
    """Mixin for audit fields on all models."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)


class CatalogueProperty(AuditMixin, Base):
    """An evaluated property saved to the catalogue."""

    __tablename__ = "catalogue_properties"

    id = Column(String, primary_key=True, default=generate_uuid)

    # "income-property" or "flip"
    module = Column(String(32), nullable=False, index=True)

    # Source
    source_address = Column(String(500), default="")
    source_link = Column(String(2000), default="")
    entry_mode = Column(String(20), default="manual")

    # Raw inputs, rounded outputs and cached band labels
    inputs = Column(JSON, default=dict)
    computed = Column(JSON, default=dict)
    bands = Column(JSON, default=dict)

    comments = Column(Text, default="")
    pinned = Column(Boolean, default=False, nullable=False)
