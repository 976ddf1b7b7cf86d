"""Request and response contracts for the HTTP API.

Amounts are Decimals and serialize as strings. Every response carries
``success``; failures fill ``error`` (user-facing text) and ``error_type``
(the exception class name) instead of raising HTTP errors.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from basewallet.errors import InsufficientLiquidityError, WalletCoreError
from basewallet.routing.base import Quote, TradeType
from basewallet.services.balances import TokenBalance
from basewallet.tokens.registry import Token

GENERIC_ERROR = "Internal error while processing the request"


class ApiResponse(BaseModel):
    success: bool = Field(..., description="Whether the request succeeded")
    error: Optional[str] = Field(None, description="Error message if failed")
    error_type: Optional[str] = Field(None, description="Error class if failed")


def error_fields(error: Exception) -> dict:
    """``success``/``error``/``error_type`` for a failed request."""
    if isinstance(error, WalletCoreError):
        return {"success": False, "error": error.user_message, "error_type": type(error).__name__}
    return {"success": False, "error": GENERIC_ERROR, "error_type": "InternalError"}


# ======================
# Tokens & prices
# ======================


class TokenInfo(BaseModel):
    symbol: str
    name: str
    address: str
    decimals: int
    is_native: bool = False

    @classmethod
    def from_token(cls, token: Token) -> "TokenInfo":
        return cls(
            symbol=token.symbol,
            name=token.name,
            address=token.address,
            decimals=token.decimals,
            is_native=token.is_native,
        )


class TokenResponse(ApiResponse):
    token: Optional[TokenInfo] = None


class PriceResponse(ApiResponse):
    token: Optional[TokenInfo] = None
    price_usd: Optional[Decimal] = Field(None, description="USD price; 0 when unpriced")


# ======================
# Quotes
# ======================


class ExactInputRequest(BaseModel):
    """Sell an exact amount of token_in."""

    token_in: str = Field(..., description="Symbol or address of the token sold")
    token_out: str = Field(..., description="Symbol or address of the token bought")
    amount_in: Decimal = Field(..., description="Amount of token_in to sell")
    slippage: Optional[Decimal] = Field(None, description="Slippage tolerance in percent")


class ExactOutputRequest(BaseModel):
    """Buy an exact amount of token_out."""

    token_in: str = Field(..., description="Symbol or address of the token paid")
    token_out: str = Field(..., description="Symbol or address of the token bought")
    amount_out: Decimal = Field(..., description="Amount of token_out to buy")
    max_amount_in: Optional[Decimal] = Field(None, description="Budget in token_in")
    slippage: Optional[Decimal] = Field(None, description="Slippage tolerance in percent")


class TransactionRequest(BaseModel):
    """Quote and build an unsigned SwapRouter02 transaction."""

    trade_type: TradeType = Field(default=TradeType.EXACT_INPUT)
    token_in: str
    token_out: str
    amount: Decimal = Field(..., description="amount_in for exact input, amount_out for exact output")
    max_amount_in: Optional[Decimal] = None
    slippage: Optional[Decimal] = None
    recipient: str = Field(..., description="Address receiving the output")


class QuoteResponse(ApiResponse):
    trade_type: Optional[TradeType] = None
    token_in: Optional[str] = None
    token_out: Optional[str] = None
    amount_in: Optional[Decimal] = None
    maximum_input: Optional[Decimal] = None
    expected_output: Optional[Decimal] = None
    minimum_output: Optional[Decimal] = None
    price_impact: Optional[Decimal] = Field(None, description="Percent, fee included")
    fee: Optional[Decimal] = Field(None, description="Sum of pool fees in percent")
    slippage_tolerance: Optional[Decimal] = None
    route: list[str] = Field(default_factory=list)
    swap_params: Optional[dict] = None

    # Exact-output shortfall details
    required_input: Optional[Decimal] = None
    max_input: Optional[Decimal] = None
    achievable_output: Optional[Decimal] = None

    @classmethod
    def from_quote(cls, quote: Quote) -> "QuoteResponse":
        return cls(
            success=True,
            trade_type=quote.trade_type,
            token_in=quote.token_in.symbol,
            token_out=quote.token_out.symbol,
            amount_in=quote.amount_in,
            maximum_input=quote.maximum_input,
            expected_output=quote.expected_output,
            minimum_output=quote.minimum_output,
            price_impact=quote.price_impact,
            fee=quote.fee,
            slippage_tolerance=quote.slippage_tolerance,
            route=quote.route.symbols,
            swap_params=quote.swap_params.to_dict(),
        )

    @classmethod
    def from_error(cls, error: Exception) -> "QuoteResponse":
        fields = error_fields(error)
        if isinstance(error, InsufficientLiquidityError):
            fields.update(
                token_in=error.token_in,
                token_out=error.token_out,
                required_input=error.required_input,
                max_input=error.max_input,
                achievable_output=error.achievable_output,
            )
        return cls(**fields)


class SwapTransaction(BaseModel):
    to: str
    data: str
    value: str = Field(..., description="Native wei attached, as a decimal string")


class TransactionResponse(ApiResponse):
    quote: Optional[QuoteResponse] = None
    transaction: Optional[SwapTransaction] = None


# ======================
# Balances
# ======================


class BalanceItem(BaseModel):
    symbol: str
    address: str
    balance: Decimal
    raw_balance: str
    usd_value: Decimal

    @classmethod
    def from_balance(cls, item: TokenBalance) -> "BalanceItem":
        return cls(
            symbol=item.symbol,
            address=item.token.address,
            balance=item.balance,
            raw_balance=str(item.raw_balance),
            usd_value=item.usd_value,
        )


class BalancesResponse(ApiResponse):
    address: str
    balances: list[BalanceItem] = Field(default_factory=list)
    total_usd_value: Optional[Decimal] = None


def log_failure(logger, operation: str, error: Exception) -> None:
    """Typed failures at info level; anything else with a traceback."""
    if isinstance(error, WalletCoreError):
        logger.info(f"{operation} failed: {type(error).__name__}: {error}")
    else:
        logger.error(f"{operation} failed unexpectedly: {error}", exc_info=error)
