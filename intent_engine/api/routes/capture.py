"""
Capture Endpoints

One POST per channel. Each call classifies the payload, stores the
resulting signals and queues the identity for recomputation; scoring
happens later on the scheduler tick.
"""
from fastapi import APIRouter, Depends

from intent_engine.api.dependencies import get_engine
from intent_engine.api.models.capture import (
    CaptureResponse,
    CommunityCaptureRequest,
    CompetitiveCaptureRequest,
    ContentCaptureRequest,
    DocumentationCaptureRequest,
    RepositoryCaptureRequest,
    WebsiteCaptureRequest,
)
from intent_engine.core.intent_engine import IntentEngine
from intent_engine.models.competitive import CompetitiveCapture

router = APIRouter(prefix="/capture", tags=["Capture"])


@router.post("/website", response_model=CaptureResponse)
async def capture_website(body: WebsiteCaptureRequest, engine: IntentEngine = Depends(get_engine)):
    signals = await engine.capture_website(
        body.identity_id,
        body.page_url,
        time_on_page=body.time_on_page,
        interactions=body.interactions,
        referrer=body.referrer,
        utm=body.utm,
    )
    return CaptureResponse.from_signals(body.identity_id, signals)


@router.post("/repository", response_model=CaptureResponse)
async def capture_repository(body: RepositoryCaptureRequest, engine: IntentEngine = Depends(get_engine)):
    signals = await engine.capture_repository_activity(body.identity_id, body.account_handle, body.activity)
    return CaptureResponse.from_signals(body.identity_id, signals)


@router.post("/documentation", response_model=CaptureResponse)
async def capture_documentation(body: DocumentationCaptureRequest, engine: IntentEngine = Depends(get_engine)):
    signals = await engine.capture_documentation(
        body.identity_id,
        body.doc_path,
        time_spent=body.time_spent,
        scroll_depth=body.scroll_depth,
        search_queries=body.search_queries,
        downloaded_assets=body.downloaded_assets,
    )
    return CaptureResponse.from_signals(body.identity_id, signals)


@router.post("/community", response_model=CaptureResponse)
async def capture_community(body: CommunityCaptureRequest, engine: IntentEngine = Depends(get_engine)):
    signals = await engine.capture_community(body.identity_id, body.activity)
    return CaptureResponse.from_signals(body.identity_id, signals)


@router.post("/content", response_model=CaptureResponse)
async def capture_content(body: ContentCaptureRequest, engine: IntentEngine = Depends(get_engine)):
    signals = await engine.capture_content(body.identity_id, body.engagement)
    return CaptureResponse.from_signals(body.identity_id, signals)


@router.post("/competitive", response_model=CompetitiveCapture)
async def capture_competitive(body: CompetitiveCaptureRequest, engine: IntentEngine = Depends(get_engine)):
    """Stores competitive signals and returns the refreshed competitive intelligence."""
    return await engine.capture_competitive(body.identity_id, body.activity)
