"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pat.main import app
from pat.db.database import get_db
from pat.db.models import Base, CatalogueProperty  # noqa: F401  (registers tables)


# Create a shared test database engine
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency globally for all tests
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and drop after."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session():
    """Create database session for test setup."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def rental_inputs():
    """Duplex at $300k, 20% down, 6% over 30 years, two units at $1,500."""
    return {
        "property_value": 300000,
        "percent_down_pct": 20,
        "rate_apr_pct": 6,
        "loan_length_years": 30,
        "taxes_monthly": 250,
        "insurance_monthly": 100,
        "hoa_monthly": 0,
        "est_improvement_cost": 0,
        "unit_count": 2,
        "rent_per_unit_monthly": 1500,
    }


@pytest.fixture
def flip_inputs():
    """$250k flip, 20% down at 6%, interest-only, held 6 months."""
    return {
        "property_value": 250000,
        "percent_down_pct": 20,
        "rate_apr_pct": 6,
        "loan_length_years": 30,
        "est_fixing_cost": 40000,
        "taxes_monthly": 200,
        "insurance_monthly": 90,
        "hoa_monthly": 0,
        "months_hold": 6,
        "desired_resale_value": 420000,
        "interest_only_first_year": True,
    }
