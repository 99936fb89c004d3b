"""
Database configuration and models.
"""

from pat.db.database import engine, SessionLocal, get_db
from pat.db.models import Base

__all__ = ["engine", "SessionLocal", "get_db", "Base"]
