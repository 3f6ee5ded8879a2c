"""
FastAPI Application

Main entry point for the Intent Engine API.
Handles application lifecycle and router mounting.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from loguru import logger

from intent_engine.config import Settings, get_settings
from intent_engine.core.intent_engine import IntentEngine
from intent_engine.repositories import InMemorySignalStore, MongoSignalStore, SignalStore, db_manager
from intent_engine.services.processing_scheduler import ProcessingScheduler
from intent_engine.services.profile_provider import HttpProfileProvider, InMemoryProfileProvider
from intent_engine.services.workflow_triggers import (
    LogOnlyWorkflowTrigger,
    WebhookWorkflowTrigger,
    WorkflowDispatcher,
)
from intent_engine.utils.observability import configure_logging
from intent_engine.api.routes import capture_router, health_router, identities_router, metrics_router


async def build_signal_store(settings: Settings) -> SignalStore:
    """In-memory by default; MongoDB when SIGNAL_STORE_BACKEND=mongodb."""
    if settings.signal_store_backend == "mongodb":
        await db_manager.connect()
        await db_manager.create_indexes()
        return MongoSignalStore(db_manager.database, settings.signal_retention_days)
    return InMemorySignalStore(settings.signal_retention_days)


async def build_engine(settings: Settings) -> IntentEngine:
    """Wire the engine's collaborators from configuration."""
    store = await build_signal_store(settings)

    if settings.profile_service_url:
        profile_provider = HttpProfileProvider(settings.profile_service_url)
    else:
        logger.warning("PROFILE_SERVICE_URL not set, fit scores will be 0")
        profile_provider = InMemoryProfileProvider()

    if settings.workflow_webhook_url:
        trigger = WebhookWorkflowTrigger(settings.workflow_webhook_url)
    else:
        trigger = LogOnlyWorkflowTrigger()

    return IntentEngine(
        store=store,
        profile_provider=profile_provider,
        dispatcher=WorkflowDispatcher(trigger=trigger),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle: startup and shutdown events.

    Startup:
    - Build the engine (connects to MongoDB when configured)
    - Start the processing scheduler in the background

    Shutdown:
    - Stop the scheduler after its current tick
    - Disconnect from MongoDB
    """
    configure_logging()
    settings = get_settings()
    logger.info("Starting Intent Engine API server...")

    engine = await build_engine(settings)
    scheduler = ProcessingScheduler(engine)

    app.state.engine = engine
    app.state.scheduler = scheduler

    await scheduler.start()
    logger.info("API server ready to capture signals")

    yield

    logger.info("Shutting down API server...")
    await scheduler.stop()

    if settings.signal_store_backend == "mongodb":
        await db_manager.disconnect()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Intent Engine API",
    description="Buyer intent signal capture and time-decayed scoring",
    version="1.0.0",
    lifespan=lifespan
)

# Mount routers
app.include_router(health_router)
app.include_router(capture_router)
app.include_router(identities_router)
app.include_router(metrics_router)
