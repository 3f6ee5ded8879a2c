import datetime as dt
from pydantic import BaseModel, ConfigDict


def utc_now() -> dt.datetime:
    """Timezone-aware wall clock used wherever no explicit instant is supplied."""
    return dt.datetime.now(dt.UTC)


class EngineModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra='forbid'
    )


class FrozenEngineModel(EngineModel):
    """Records that are never mutated once created (signals, published scores)."""
    model_config = ConfigDict(
        populate_by_name=True,
        extra='forbid',
        frozen=True
    )
