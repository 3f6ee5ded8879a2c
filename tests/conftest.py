import pytest
import datetime as dt
from intent_engine.core.intent_engine import IntentEngine
from intent_engine.models.profile import IdentityProfile
from intent_engine.models.signal import IntentSignal, SignalCategory, SignalSource
from intent_engine.repositories import InMemorySignalStore
from intent_engine.services.profile_provider import InMemoryProfileProvider
from intent_engine.services.workflow_triggers import WorkflowDispatcher
from intent_engine.utils.metrics import metrics


FIXED_NOW = dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.UTC)


class FakeClock:
    """Settable clock for deterministic captures and recomputations."""

    def __init__(self, now: dt.datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += dt.timedelta(**delta)


class RecordingTrigger:
    """WorkflowTrigger double that remembers every call."""

    def __init__(self):
        self.high: list = []
        self.medium: list = []

    async def trigger_high_intent(self, score) -> bool:
        self.high.append(score)
        return True

    async def trigger_medium_intent(self, score) -> bool:
        self.medium.append(score)
        return True


class BrokenPruneStore(InMemorySignalStore):
    """In-memory store whose prune fails for chosen identities, or listing fails while down."""

    def __init__(self, broken=(), message: str = "write failed", down: bool = False):
        super().__init__()
        self.broken = set(broken)
        self.message = message
        self.down = down

    async def prune(self, identity_id, now):
        if identity_id in self.broken:
            raise RuntimeError(self.message)
        return await super().prune(identity_id, now)

    async def identities(self):
        if self.down:
            raise RuntimeError("store unavailable")
        return await super().identities()


def make_signal(
    identity_id: str = "visitor-1",
    timestamp: dt.datetime = FIXED_NOW,
    source: SignalSource = SignalSource.WEBSITE,
    category: SignalCategory = SignalCategory.PURCHASE_INTENT,
    intent_weight: float = 0.95,
    decay_rate: float = 0.1,
    signal_type: str = "page_visit",
    **data,
) -> IntentSignal:
    return IntentSignal(
        identity_id=identity_id,
        timestamp=timestamp,
        source=source,
        category=category,
        signal_type=signal_type,
        signal_data=data,
        intent_weight=intent_weight,
        confidence=0.9,
        decay_rate=decay_rate,
    )


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sre_profile():
    """Ideal-customer profile: large SRE org, manager, cloud-native stack."""
    return IdentityProfile(
        employee_count=800,
        department="SRE",
        seniority="Director",
        technology_stack=["Kubernetes", "Docker", "AWS", "Monitoring", "Microservices", "Go"],
    )


@pytest.fixture
def profiles():
    return InMemoryProfileProvider()


@pytest.fixture
def trigger():
    return RecordingTrigger()


@pytest.fixture
def engine(clock, profiles, trigger):
    """Engine on in-memory collaborators and a fake clock."""
    return IntentEngine(
        profile_provider=profiles,
        dispatcher=WorkflowDispatcher(trigger=trigger, timeout_seconds=1.0),
        clock=clock,
    )


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
