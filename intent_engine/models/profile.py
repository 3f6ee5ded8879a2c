from typing import List, Optional
from pydantic import ConfigDict, Field
from intent_engine.models.base import EngineModel


class IdentityProfile(EngineModel):
    """
    Firmographic and demographic facts about an identity.
    Owned by the external profile store; read-only to the engine.
    """
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    employee_count: int = Field(0, ge=0)
    department: Optional[str] = None
    seniority: Optional[str] = None
    technology_stack: List[str] = Field(default_factory=list)
    is_customer: bool = False
