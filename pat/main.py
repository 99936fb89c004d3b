"""
Main FastAPI application entry point.
"""

import logging

from fastapi import FastAPI

from pat.config import get_settings
from pat.api import router as api_router
from pat.db.database import init_db

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Real estate deal evaluation: rental KPIs, flip ROI and a property catalogue",
    version="0.1.0",
    debug=settings.debug,
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.on_event("startup")
def on_startup():
    """Create catalogue tables if they do not exist."""
    init_db()


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": "0.1.0"}
