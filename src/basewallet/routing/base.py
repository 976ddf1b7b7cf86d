"""Quote, route and swap parameter models."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from basewallet.chain.abi import NATIVE_ADDRESS
from basewallet.pools.base import Pool
from basewallet.tokens.registry import Token


class TradeType(str, Enum):
    EXACT_INPUT = "exact_input"
    EXACT_OUTPUT = "exact_output"


@dataclass(frozen=True)
class Route:
    """Ordered pools (one or two) and the token path through them."""

    pools: tuple[Pool, ...]
    path: tuple[Token, ...]

    def __post_init__(self):
        if not self.pools or len(self.path) != len(self.pools) + 1:
            raise ValueError("Route needs one more token than pools")

    @property
    def token_in(self) -> Token:
        return self.path[0]

    @property
    def token_out(self) -> Token:
        return self.path[-1]

    @property
    def symbols(self) -> list[str]:
        return [token.symbol for token in self.path]

    @property
    def is_direct(self) -> bool:
        return len(self.pools) == 1

    @property
    def fees(self) -> list[int]:
        return [pool.fee for pool in self.pools]

    @property
    def total_fee_percent(self) -> Decimal:
        """Sum of per-hop fee tiers, in percent."""
        return sum((pool.fee_percent for pool in self.pools), Decimal(0))

    def __str__(self) -> str:
        return " -> ".join(self.symbols)


@dataclass(frozen=True)
class SwapParams:
    """Router call bounds for a quote (integer token units).

    Exact input: ``amount_in`` is exact, ``amount_out`` the minimum.
    Exact output: ``amount_out`` is exact, ``amount_in`` the maximum.
    """

    router: str
    pool_address: str
    path: bytes
    amount_in: int
    amount_out: int
    value: int = 0
    recipient: str = NATIVE_ADDRESS
    calldata: bytes = b""

    def to_dict(self) -> dict:
        return {
            "router": self.router,
            "pool_address": self.pool_address,
            "recipient": self.recipient,
            "path": "0x" + self.path.hex(),
            "amount_in": str(self.amount_in),
            "amount_out": str(self.amount_out),
            "value": str(self.value),
            "calldata": "0x" + self.calldata.hex(),
        }


@dataclass(frozen=True)
class Quote:
    """A swap quote over Uniswap V3 pools. Amounts are whole-token Decimals."""

    trade_type: TradeType
    token_in: Token
    token_out: Token
    amount_in: Decimal
    expected_output: Decimal
    minimum_output: Decimal
    price_impact: Decimal
    fee: Decimal
    route: Route
    swap_params: SwapParams
    slippage_tolerance: Decimal
    maximum_input: Optional[Decimal] = None

    @property
    def effective_rate(self) -> Decimal:
        """Output per unit of input, fees included."""
        if self.amount_in == 0:
            return Decimal("0")
        return self.expected_output / self.amount_in

    @property
    def route_symbols(self) -> list[str]:
        return self.route.symbols

    def to_dict(self) -> dict:
        return {
            "trade_type": self.trade_type.value,
            "token_in": self.token_in.symbol,
            "token_out": self.token_out.symbol,
            "amount_in": str(self.amount_in),
            "maximum_input": str(self.maximum_input) if self.maximum_input is not None else None,
            "expected_output": str(self.expected_output),
            "minimum_output": str(self.minimum_output),
            "price_impact": str(self.price_impact),
            "fee": str(self.fee),
            "route": self.route.symbols,
            "slippage_tolerance": str(self.slippage_tolerance),
            "swap_params": self.swap_params.to_dict(),
        }
