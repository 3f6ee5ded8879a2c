"""
Workflow Trigger Service

Hands freshly published scores to downstream sales workflows (CRM task,
sales alert, nurture sequence). Triggering is fire-and-forget: a slow or
failing workflow endpoint is logged and skipped, never retried, and never
touches the stored score.
"""

import asyncio
import httpx
from enum import StrEnum
from typing import Optional, Protocol
from intent_engine.config import get_settings
from intent_engine.models.score import IntentScore
from intent_engine.utils.circuit_breaker import CircuitBreakerGroup, CircuitOpenError
from intent_engine.utils.metrics import metrics
from intent_engine.utils.observability import logger, log_business_event


class WorkflowTier(StrEnum):
    HIGH_INTENT = "high_intent"
    MEDIUM_INTENT = "medium_intent"


class WorkflowTriggerError(Exception):
    """Raised when a workflow endpoint reports that it did not accept a trigger."""
    pass


def select_workflow(
    score: IntentScore,
    high_score_threshold: float = 70.0,
    high_urgency_threshold: float = 80.0,
    medium_score_threshold: float = 40.0,
) -> Optional[WorkflowTier]:
    """
    Pick the workflow tier for a published score.

    High intent needs both a strong overall score and urgency; anything else
    above the medium threshold is medium intent. At most one tier fires.
    """
    if score.overall_score > high_score_threshold and score.urgency_score > high_urgency_threshold:
        return WorkflowTier.HIGH_INTENT
    if score.overall_score > medium_score_threshold:
        return WorkflowTier.MEDIUM_INTENT
    return None


class WorkflowTrigger(Protocol):
    """
    Protocol for downstream workflow channels.

    Implement this to plug in a CRM, alerting tool or nurture system.
    """

    async def trigger_high_intent(self, score: IntentScore) -> bool:
        """
        Start the high-intent workflow (e.g. immediate sales alert).

        Returns:
            True if the workflow accepted the trigger
        """
        ...

    async def trigger_medium_intent(self, score: IntentScore) -> bool:
        """
        Start the medium-intent workflow (e.g. nurture sequence).

        Returns:
            True if the workflow accepted the trigger
        """
        ...


class LogOnlyWorkflowTrigger:
    """
    Fallback trigger that only logs.

    Used when no workflow webhook is configured.
    """

    async def trigger_high_intent(self, score: IntentScore) -> bool:
        logger.bind(identity_id=score.identity_id, overall_score=score.overall_score).info(
            f"High intent detected for {score.identity_id} (no workflow configured)"
        )
        return True

    async def trigger_medium_intent(self, score: IntentScore) -> bool:
        logger.bind(identity_id=score.identity_id, overall_score=score.overall_score).info(
            f"Medium intent detected for {score.identity_id} (no workflow configured)"
        )
        return True


class WebhookWorkflowTrigger:
    """
    Posts the published score to a workflow webhook.

    The payload carries the tier and the full score so the receiver can
    route on stage, urgency or fit.
    """

    def __init__(self, webhook_url: Optional[str] = None, timeout: Optional[float] = None):
        settings = get_settings()
        self._webhook_url = webhook_url or settings.workflow_webhook_url
        self._timeout = timeout or settings.workflow_trigger_timeout_seconds

    @property
    def is_configured(self) -> bool:
        return self._webhook_url is not None

    async def trigger_high_intent(self, score: IntentScore) -> bool:
        return await self._post(WorkflowTier.HIGH_INTENT, score)

    async def trigger_medium_intent(self, score: IntentScore) -> bool:
        return await self._post(WorkflowTier.MEDIUM_INTENT, score)

    def _build_payload(self, tier: WorkflowTier, score: IntentScore) -> dict:
        return {
            "workflow": tier.value,
            "identity_id": score.identity_id,
            "score": score.model_dump(mode="json"),
        }

    async def _post(self, tier: WorkflowTier, score: IntentScore) -> bool:
        if not self._webhook_url:
            logger.warning("Workflow webhook not configured, skipping trigger")
            return False

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self._webhook_url,
                    json=self._build_payload(tier, score),
                    timeout=self._timeout
                )
                response.raise_for_status()

            logger.bind(identity_id=score.identity_id, workflow=tier.value).info(
                f"Workflow {tier.value} triggered for {score.identity_id}"
            )
            return True

        except httpx.HTTPError as e:
            logger.bind(identity_id=score.identity_id, error=str(e)).error(
                f"Failed to trigger workflow {tier.value}: {e}"
            )
            return False


class WorkflowDispatcher:
    """
    Routes published scores to the configured WorkflowTrigger.

    Each tier has its own circuit breaker and every call runs under a
    time budget. ``dispatch`` never raises: the outcome is returned as a
    status string and counted in metrics.
    """

    def __init__(
        self,
        trigger: Optional[WorkflowTrigger] = None,
        timeout_seconds: Optional[float] = None,
        high_score_threshold: Optional[float] = None,
        high_urgency_threshold: Optional[float] = None,
        medium_score_threshold: Optional[float] = None,
        breakers: Optional[CircuitBreakerGroup] = None,
    ):
        settings = get_settings()
        self.trigger = trigger or LogOnlyWorkflowTrigger()
        self.timeout_seconds = timeout_seconds or settings.workflow_trigger_timeout_seconds
        self.high_score_threshold = (
            high_score_threshold if high_score_threshold is not None else settings.high_intent_score_threshold
        )
        self.high_urgency_threshold = (
            high_urgency_threshold if high_urgency_threshold is not None else settings.high_intent_urgency_threshold
        )
        self.medium_score_threshold = (
            medium_score_threshold if medium_score_threshold is not None else settings.medium_intent_score_threshold
        )
        self.breakers = breakers or CircuitBreakerGroup("workflow")

    def select(self, score: IntentScore) -> Optional[WorkflowTier]:
        return select_workflow(
            score,
            self.high_score_threshold,
            self.high_urgency_threshold,
            self.medium_score_threshold,
        )

    async def dispatch(self, score: IntentScore) -> str:
        """
        Fire the workflow matching ``score``, if any.

        Returns:
            One of: skipped, sent, rejected, timeout, circuit_open, failed
        """
        tier = self.select(score)
        if tier is None:
            return "skipped"

        if tier == WorkflowTier.HIGH_INTENT:
            send = self.trigger.trigger_high_intent
        else:
            send = self.trigger.trigger_medium_intent

        async def attempt() -> bool:
            accepted = await asyncio.wait_for(send(score), timeout=self.timeout_seconds)
            if not accepted:
                raise WorkflowTriggerError(f"{tier.value} workflow rejected {score.identity_id}")
            return accepted

        try:
            await self.breakers.get(tier.value).call(attempt)
            status = "sent"
        except CircuitOpenError:
            logger.warning(f"Workflow {tier.value} circuit open, skipping {score.identity_id}")
            status = "circuit_open"
        except asyncio.TimeoutError:
            logger.warning(
                f"Workflow {tier.value} timed out after {self.timeout_seconds}s for {score.identity_id}"
            )
            status = "timeout"
        except WorkflowTriggerError as e:
            logger.warning(str(e))
            status = "rejected"
        except Exception as e:
            logger.error(f"Workflow {tier.value} failed for {score.identity_id}: {e}")
            status = "failed"

        metrics.workflow_triggers.inc(tier=tier.value, status=status)
        if status == "sent":
            log_business_event(
                "workflow_triggered",
                score.identity_id,
                workflow=tier.value,
                overall_score=round(score.overall_score, 2),
                urgency_score=round(score.urgency_score, 2),
                stage=score.buying_stage_prediction.value,
            )
        return status
