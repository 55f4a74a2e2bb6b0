"""FastAPI application for the appreg web API.

Provides REST API endpoints wrapping the appreg package for:
- Ownership and manager roster
- The current application release record
- The node directory (submit, approve, remove, list)
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from appreg import __version__
from appreg.config import load_settings
from appreg.errors import RegistryError
from appreg.logging_config import setup_logging

from web.backend.app.middleware.errors import registry_error_handler
from web.backend.app.routers import app_info, identity, nodes

_settings = load_settings()
setup_logging("api", _settings.log_level, _settings.log_file or None)

app = FastAPI(
    title="appreg API",
    description=(
        "REST API for the permissioned application-release and node registry. "
        "Callers identify themselves with the X-Principal header."
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

app.add_exception_handler(RegistryError, registry_error_handler)

# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(identity.router)
app.include_router(app_info.router)
app.include_router(nodes.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "appreg API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
