"""AdsIntel — FastAPI Application Entry Point.

Ad-campaign and CRM-lead analytics: CSV imports, Meta Ads sync and a
per-user dashboard.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.database import check_connection, init_db
from app.scheduler.jobs import start_scheduler, stop_scheduler
from app.api.crm_routes import router as crm_router
from app.api.dashboard_routes import router as dashboard_router
from app.api.meta_routes import router as meta_router
from app.api.metrics_routes import router as metrics_router
from app.api.settings_routes import router as settings_router
from app.core.logging import get_logger

logger = get_logger("main")


IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 AdsIntel starting up...")
    logger.info(f"🌍 Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    if check_connection():
        init_db()
    else:
        logger.error("❌ Database NOT connected, endpoints will fail")
    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    logger.info("AdsIntel shut down")


app = FastAPI(
    title="AdsIntel",
    description="Ad campaign metrics and CRM lead analytics: imports, Meta sync and dashboards.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(metrics_router)
app.include_router(crm_router)
app.include_router(dashboard_router)
app.include_router(meta_router)
app.include_router(settings_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "adsintel",
        "version": "1.0.0",
    }
