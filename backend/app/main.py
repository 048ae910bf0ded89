"""
LegalFooter Backend API
FastAPI application receiving Stripe checkout webhooks and issuing policies.
"""

import logging
import os

from fastapi import FastAPI, HTTPException

from app.routers import stripe_webhook
from app.db import supabase_admin
from app.services.policy_store import POLICIES_TABLE

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="LegalFooter API",
    description="Stripe checkout webhook receiver for LegalFooter website protection policies",
    version="0.1.0",
)

# Include routers
app.include_router(stripe_webhook.router, prefix="/api/stripe", tags=["stripe"])


@app.on_event("startup")
async def log_startup_url() -> None:
    """
    Log the webhook URL so it can be pasted into the Stripe dashboard or
    ``stripe listen --forward-to``.

    The port is taken from ``HOST_PORT`` so Docker-mapped ports are reported
    correctly. Defaults to 8000.
    """
    host_port = os.getenv("HOST_PORT", "8000")
    logger.info(
        "LegalFooter API running at http://localhost:%s\n"
        "  Stripe webhook: http://localhost:%s/api/stripe/webhook",
        host_port,
        host_port,
    )


@app.get("/")
async def root():
    return {"message": "LegalFooter API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/db")
async def health_db():
    """
    Test the Supabase database connection.

    Selects one id from legalfooter_policies to verify that the service-role
    client can reach the database.  Returns 503 on failure.
    """
    if supabase_admin is None:
        raise HTTPException(
            status_code=503,
            detail="Database client unavailable: SUPABASE_SERVICE_ROLE_KEY is not configured",
        )

    try:
        supabase_admin.table(POLICIES_TABLE).select("id").limit(1).execute()
        return {"status": "ok", "database": "reachable"}
    except Exception as exc:
        logger.error(f"Database health check failed: {exc}")
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {str(exc)}",
        )
