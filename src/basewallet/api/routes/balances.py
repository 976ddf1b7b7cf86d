"""Balance endpoints.

Only public chain state is read; no keys are involved.
"""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends

from basewallet.api.contracts import BalanceItem, BalancesResponse, error_fields, log_failure
from basewallet.api.deps import get_core
from basewallet.core import WalletCore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/balances", tags=["Balances"])


@router.get("/{address}", response_model=BalancesResponse)
async def get_balances(address: str, core: WalletCore = Depends(get_core)) -> BalancesResponse:
    """Non-zero balances of the tracked tokens with USD values."""
    try:
        balances = await core.all_balances(address, deadline=core.new_deadline("balances"))
    except Exception as e:
        log_failure(logger, f"balances for {address}", e)
        return BalancesResponse(address=address, **error_fields(e))

    items = [BalanceItem.from_balance(b) for b in balances]
    total = sum((b.usd_value for b in balances), Decimal(0))
    return BalancesResponse(success=True, address=address, balances=items, total_usd_value=total)
