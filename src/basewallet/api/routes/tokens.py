"""Token lookup and price endpoints."""

import logging

from fastapi import APIRouter, Depends

from basewallet.api.contracts import PriceResponse, TokenInfo, TokenResponse, error_fields, log_failure
from basewallet.api.deps import get_core
from basewallet.core import WalletCore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Tokens"])


@router.get("/tokens/{token}", response_model=TokenResponse)
async def get_token(token: str, core: WalletCore = Depends(get_core)) -> TokenResponse:
    """Resolve a symbol or contract address to token details."""
    try:
        resolved = await core.resolve_token(token, deadline=core.new_deadline("token lookup"))
    except Exception as e:
        log_failure(logger, "token lookup", e)
        return TokenResponse(**error_fields(e))
    return TokenResponse(success=True, token=TokenInfo.from_token(resolved))


@router.get("/prices/{token}", response_model=PriceResponse)
async def get_price(token: str, core: WalletCore = Depends(get_core)) -> PriceResponse:
    """USD price of a token (0 when no price source is configured)."""
    try:
        deadline = core.new_deadline("price")
        resolved = await core.resolve_token(token, deadline=deadline)
        price = await core.oracle.price_of(resolved, deadline=deadline)
    except Exception as e:
        log_failure(logger, "price", e)
        return PriceResponse(**error_fields(e))
    return PriceResponse(success=True, token=TokenInfo.from_token(resolved), price_usd=price)
