"""
Structured Logging & Observability
Production-grade logging that's both human-readable and machine-parseable.
"""
import sys
from loguru import logger
from typing import Any, Dict
from intent_engine.config import get_settings


def configure_logging():
    """
    Configure loguru for production observability.

    In development: Human-readable colorized output
    In production: Structured JSON logs for ingestion (ELK, Datadog, etc.)
    """
    settings = get_settings()

    # Remove default handler
    logger.remove()

    # Development mode: Beautiful console output
    if not settings.enable_structured_logging:
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{message}"
            ),
            level=settings.log_level,
            colorize=True,
        )
    # Production mode: JSON structured logs
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level=settings.log_level,
            serialize=True,  # Output as JSON
        )

    logger.info(f"Logging configured: level={settings.log_level}, structured={settings.enable_structured_logging}")


def log_recomputation(
    identity_id: str,
    overall_score: float,
    urgency_score: float,
    stage: str,
    trend: str,
    duration_ms: float | None = None,
    **context
):
    """
    Structured logging for a score recomputation.

    Args:
        identity_id: The identity whose score was recomputed
        overall_score: Published overall score (0-100)
        urgency_score: Published urgency score (0-100)
        stage: Predicted buying stage
        trend: Intent trend direction
        duration_ms: Recomputation time in milliseconds
        **context: Additional context (signal_count, fit_score, etc.)

    Example:
        >>> log_recomputation(
        ...     identity_id="visitor-42",
        ...     overall_score=64.2,
        ...     urgency_score=85,
        ...     stage="evaluation",
        ...     trend="increasing",
        ...     duration_ms=1.8,
        ... )
    """
    log_data = {
        "event_type": "intent_score",
        "identity_id": identity_id,
        "overall_score": round(overall_score, 2),
        "urgency_score": round(urgency_score, 2),
        "stage": stage,
        "trend": trend,
    }

    if duration_ms is not None:
        log_data["duration_ms"] = round(duration_ms, 2)

    # Merge additional context
    log_data.update(context)

    logger.bind(**log_data).info(
        f"Intent score for {identity_id}: overall {overall_score:.1f}, "
        f"urgency {urgency_score:.0f}, stage {stage}, trend {trend}"
    )


def log_business_event(
    event_type: str,
    identity_id: str,
    **details: Dict[str, Any]
):
    """
    Log business-critical events for analytics.

    Examples:
        - High/medium intent workflow triggered
        - Competitive intelligence refreshed
        - Identity expired by retention

    Args:
        event_type: Type of event (e.g., "workflow_triggered", "identity_expired")
        identity_id: The identity involved
        **details: Event-specific data
    """
    log_data = {
        "event_type": event_type,
        "identity_id": identity_id,
        **details
    }

    logger.bind(**log_data).success(f"Business Event: {event_type}")
