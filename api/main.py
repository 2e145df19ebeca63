"""
Lead Automation Governance API - Main Application.

FastAPI application exposing the governance triggers to the CRM and the
campaign dispatch service.

Run a single worker per deployment unless the lead store is shared: per-lead
locks are in-process, and only the stop flag and metadata fills are guarded
by conditional writes across processes.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from repositories.client import CORS_ALLOW_ORIGINS

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Lead Automation Governance API",
    description="Decides whether automated outreach may run for a lead, on which channel, and when it must stop",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Browser access is opt-in through CORS_ALLOW_ORIGINS.
if CORS_ALLOW_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )


@app.get("/health", tags=["Health"])
def health_check():
    """Liveness check: returns the API status and version."""
    return {
        "status": "healthy",
        "version": __version__,
        "service": "lead-automation-governance-api",
    }


from api.routers import automation  # noqa: E402

app.include_router(automation.router, prefix="/api/v1", tags=["Automation"])
