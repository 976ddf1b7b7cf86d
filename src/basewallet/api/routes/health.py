"""Health check endpoints."""

import logging

from fastapi import APIRouter, Depends

from basewallet.api.contracts import error_fields
from basewallet.api.deps import get_core
from basewallet.core import WalletCore
from basewallet.errors import WalletCoreError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "basewallet"}


@router.get("/health/detailed")
async def detailed_health(core: WalletCore = Depends(get_core)):
    """Detailed health check: chain probe plus configuration info."""
    result = {
        "status": "healthy",
        "service": "basewallet",
        "version": "0.1.0",
        "config": core.settings.get_safe_dict(),
    }
    try:
        chain = await core.check_health(deadline=core.new_deadline("health check"))
    except WalletCoreError as e:
        logger.warning(f"Chain health probe failed: {e}")
        result["status"] = "degraded"
        result["chain"] = error_fields(e)
        return result

    result["chain"] = chain
    if not chain["chain_ok"]:
        result["status"] = "degraded"
    return result
