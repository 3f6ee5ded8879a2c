"""
Metrics Endpoints

Prometheus-compatible metrics and recompute queue statistics.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import Response, JSONResponse
from loguru import logger

from intent_engine.api.dependencies import get_engine
from intent_engine.core.intent_engine import IntentEngine
from intent_engine.utils.metrics import metrics

router = APIRouter(tags=["Metrics"])


@router.get("/metrics")
async def prometheus_metrics(engine: IntentEngine = Depends(get_engine)):
    """
    Prometheus metrics endpoint.

    Includes:
    - Signals captured by source and captures by channel
    - Recomputation outcomes and latency
    - Workflow triggers by tier and outcome
    - Recompute queue depth
    - Retention removals and tracked identities

    Content-Type: text/plain; version=0.0.4; charset=utf-8
    """
    try:
        queue_stats = await engine.queue.get_metrics()
        metrics.track_queue(queue_stats.pending, queue_stats.processing, queue_stats.deferred)

        return Response(
            content=metrics.export(),
            media_type="text/plain; version=0.0.4; charset=utf-8"
        )

    except Exception as e:
        logger.exception(f"Failed to export metrics: {e}")
        return Response(
            content=f"# Error exporting metrics: {e}\n",
            media_type="text/plain",
            status_code=500
        )


@router.get("/metrics/queue")
async def queue_metrics(engine: IntentEngine = Depends(get_engine)):
    """
    Recompute queue statistics: pending, processing, completed, failed,
    deferred, average processing time and error rate.
    """
    try:
        queue_stats = await engine.queue.get_metrics()
        return {
            "status": "ok",
            "metrics": queue_stats.model_dump()
        }

    except Exception as e:
        logger.exception(f"Failed to get queue metrics: {e}")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "error": str(e)}
        )
