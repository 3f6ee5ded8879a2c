"""
Identity Read Endpoints

Signals, published score and competitive intelligence for one identity.
Derived records that do not exist yet return 404.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from intent_engine.api.dependencies import get_engine
from intent_engine.core.intent_engine import IntentEngine
from intent_engine.models.competitive import CompetitiveIntelligence
from intent_engine.models.score import IntentScore
from intent_engine.models.signal import IntentSignal

router = APIRouter(prefix="/identities", tags=["Identities"])


@router.get("/{identity_id}/signals", response_model=List[IntentSignal])
async def list_signals(identity_id: str, engine: IntentEngine = Depends(get_engine)):
    """Live (non-expired) signals in capture order; empty for unknown identities."""
    return await engine.get_signals(identity_id)


@router.get("/{identity_id}/score", response_model=IntentScore)
async def get_score(identity_id: str, engine: IntentEngine = Depends(get_engine)):
    score = await engine.get_score(identity_id)
    if score is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No score for identity {identity_id}"
        )
    return score


@router.get("/{identity_id}/competitive-intelligence", response_model=CompetitiveIntelligence)
async def get_competitive_intelligence(identity_id: str, engine: IntentEngine = Depends(get_engine)):
    intelligence = await engine.get_competitive_intelligence(identity_id)
    if intelligence is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No competitive intelligence for identity {identity_id}"
        )
    return intelligence
