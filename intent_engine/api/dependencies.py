"""
FastAPI Dependencies

Access to the engine and scheduler created during application startup.
"""

from fastapi import Request, HTTPException, status
from loguru import logger

from intent_engine.core.intent_engine import IntentEngine


async def get_engine(request: Request) -> IntentEngine:
    """
    Resolve the IntentEngine stored on app.state.

    Raises:
        HTTPException: 503 if the application has not finished starting
    """
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        logger.error("Intent engine requested before startup completed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Intent engine not initialized"
        )
    return engine
