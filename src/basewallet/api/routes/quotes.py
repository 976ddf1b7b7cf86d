"""Quote endpoints.

READ-ONLY: quotes and unsigned transactions are computed from pool state;
nothing is signed or broadcast.
"""

import logging

from fastapi import APIRouter, Depends

from basewallet.api.contracts import (
    ExactInputRequest,
    ExactOutputRequest,
    QuoteResponse,
    SwapTransaction,
    TransactionRequest,
    TransactionResponse,
    error_fields,
    log_failure,
)
from basewallet.api.deps import get_core
from basewallet.core import WalletCore
from basewallet.routing.base import TradeType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["Quotes"])


@router.post("/exact-input", response_model=QuoteResponse)
async def quote_exact_input(request: ExactInputRequest, core: WalletCore = Depends(get_core)) -> QuoteResponse:
    """Quote selling exactly ``amount_in`` of ``token_in``."""
    try:
        quote = await core.quote_exact_input(
            request.token_in,
            request.token_out,
            request.amount_in,
            slippage_tolerance=request.slippage,
            deadline=core.new_deadline("exact-input quote"),
        )
    except Exception as e:
        log_failure(logger, "exact-input quote", e)
        return QuoteResponse.from_error(e)
    return QuoteResponse.from_quote(quote)


@router.post("/exact-output", response_model=QuoteResponse)
async def quote_exact_output(
    request: ExactOutputRequest, core: WalletCore = Depends(get_core)
) -> QuoteResponse:
    """Quote buying exactly ``amount_out`` of ``token_out``, optionally within a budget."""
    try:
        quote = await core.quote_exact_output(
            request.token_in,
            request.token_out,
            request.amount_out,
            max_amount_in=request.max_amount_in,
            slippage_tolerance=request.slippage,
            deadline=core.new_deadline("exact-output quote"),
        )
    except Exception as e:
        log_failure(logger, "exact-output quote", e)
        return QuoteResponse.from_error(e)
    return QuoteResponse.from_quote(quote)


@router.post("/transaction", response_model=TransactionResponse)
async def build_transaction(
    request: TransactionRequest, core: WalletCore = Depends(get_core)
) -> TransactionResponse:
    """Quote and return the unsigned SwapRouter02 transaction for it."""
    try:
        deadline = core.new_deadline("swap transaction")
        if request.trade_type == TradeType.EXACT_OUTPUT:
            quote = await core.quote_exact_output(
                request.token_in,
                request.token_out,
                request.amount,
                max_amount_in=request.max_amount_in,
                slippage_tolerance=request.slippage,
                deadline=deadline,
            )
        else:
            quote = await core.quote_exact_input(
                request.token_in,
                request.token_out,
                request.amount,
                slippage_tolerance=request.slippage,
                deadline=deadline,
            )
        tx = core.build_swap_transaction(quote, request.recipient)
    except Exception as e:
        log_failure(logger, "swap transaction", e)
        return TransactionResponse(**error_fields(e))

    return TransactionResponse(
        success=True,
        quote=QuoteResponse.from_quote(quote),
        transaction=SwapTransaction(to=tx["to"], data=tx["data"], value=str(tx["value"])),
    )
