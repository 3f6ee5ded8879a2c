"""
API Routes

Modular route definitions for the Intent Engine API.
"""
from intent_engine.api.routes.health import router as health_router
from intent_engine.api.routes.capture import router as capture_router
from intent_engine.api.routes.identities import router as identities_router
from intent_engine.api.routes.metrics import router as metrics_router

__all__ = [
    "health_router",
    "capture_router",
    "identities_router",
    "metrics_router",
]
