"""FastAPI application for the seed variety registry.

Provides REST API endpoints wrapping the seedreg package for:
- Variety registration, detail updates and deactivation
- Steward management and steward checks
- The per-variety audit trail
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from seedreg import __version__
from seedreg.config import load_settings
from seedreg.logging_config import setup_logging
from web.backend.app.routers import varieties

_settings = load_settings()
setup_logging(_settings.log_level, _settings.log_file or None)

app = FastAPI(
    title="seedreg API",
    description=(
        "REST API for the seed variety registry. "
        "Stewards register, update and deactivate varieties and grant "
        "stewardship to others."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(varieties.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "seedreg API",
        "version": __version__,
        "description": "Seed variety registry REST API",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
