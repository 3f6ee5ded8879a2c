"""Services package."""
from intent_engine.services.competitive_analyzer import CompetitiveAnalyzer
from intent_engine.services.profile_provider import (
    ProfileProvider,
    InMemoryProfileProvider,
    HttpProfileProvider,
)
from intent_engine.services.workflow_triggers import (
    WorkflowTrigger,
    WorkflowTier,
    WorkflowDispatcher,
    LogOnlyWorkflowTrigger,
    WebhookWorkflowTrigger,
    select_workflow,
)

__all__ = [
    "CompetitiveAnalyzer",
    "ProfileProvider",
    "InMemoryProfileProvider",
    "HttpProfileProvider",
    "WorkflowTrigger",
    "WorkflowTier",
    "WorkflowDispatcher",
    "LogOnlyWorkflowTrigger",
    "WebhookWorkflowTrigger",
    "select_workflow",
]
