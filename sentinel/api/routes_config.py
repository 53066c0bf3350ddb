from fastapi import APIRouter

from sentinel.schemas.session import ConfigUpdate
from sentinel.services.session_manager import get_session_manager

router = APIRouter()


@router.get("")
def get_config():
    """Current thresholds, including the derived hysteresis entry/exit points."""
    return get_session_manager().config.describe()


@router.put("")
async def update_config(update: ConfigUpdate):
    """Partially update thresholds for every live session and future ones.

    Values are not range-checked beyond a window size of at least 1; an
    inverted low/high pair is accepted as-is.
    """
    config = get_session_manager().update_config(**update.changes())
    return config.describe()
