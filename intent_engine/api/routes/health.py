"""
Health and Readiness Endpoints

Kubernetes-compatible health probes for load balancers and orchestration.
"""
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from loguru import logger

from intent_engine.config import get_settings
from intent_engine.repositories import db_manager

router = APIRouter(tags=["Health"])

# API version - single source of truth
API_VERSION = "1.0.0"


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint.

    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": "intent-engine",
        "version": API_VERSION
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """
    Readiness probe - checks if service can handle requests.

    Verifies:
    - Engine is initialized
    - Processing scheduler is running
    - MongoDB answers a ping (only with the mongodb signal store)

    Returns 200 if ready, 503 if not ready.
    """
    engine = getattr(request.app.state, "engine", None)
    scheduler = getattr(request.app.state, "scheduler", None)

    if engine is None:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "Engine not initialized"}
        )

    if scheduler is None or not scheduler.is_running:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "Processing scheduler not running"}
        )

    store_status = "memory"
    if get_settings().signal_store_backend == "mongodb":
        if not await db_manager.ping():
            logger.error("Readiness check failed: MongoDB unreachable")
            return JSONResponse(
                status_code=503,
                content={"status": "not_ready", "reason": "MongoDB unreachable"}
            )
        store_status = "mongodb"

    return {
        "status": "ready",
        "signal_store": store_status,
        "scheduler": "running",
        "workflow_circuits": engine.dispatcher.breakers.get_status(),
    }


@router.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": "Intent Engine API",
        "version": API_VERSION,
        "endpoints": {
            "health": "/health",
            "ready": "/ready",
            "metrics": "/metrics",
            "queue_metrics": "/metrics/queue",
            "capture": "/capture/{website,repository,documentation,community,content,competitive} (POST)",
            "identity": "/identities/{identity_id}/{signals,score,competitive-intelligence}",
        }
    }
