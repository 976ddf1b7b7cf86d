"""Pool model and fee tiers."""

from dataclasses import dataclass, replace
from decimal import Decimal, localcontext
from enum import IntEnum
from typing import Optional

from eth_utils import to_checksum_address

from basewallet import chains
from basewallet.pools import v3_math
from basewallet.tokens.registry import Token


class FeeTier(IntEnum):
    """Uniswap V3 fee tiers in hundredths of a bip."""

    LOWEST = 100
    LOW = 500
    MEDIUM = 3000
    HIGH = 10000

    @property
    def percent(self) -> Decimal:
        return Decimal(int(self)) / Decimal(10000)


# Factory search order
SEARCH_FEE_TIERS: tuple[FeeTier, ...] = (FeeTier.LOW, FeeTier.MEDIUM, FeeTier.HIGH)


@dataclass(frozen=True)
class KnownPool:
    """Curated pool hint; verified on chain before use."""

    address: str
    token_a: str
    token_b: str
    fee: int

    def matches(self, address_a: str, address_b: str) -> bool:
        pair = {self.token_a.lower(), self.token_b.lower()}
        return pair == {address_a.lower(), address_b.lower()}


KNOWN_POOLS: tuple[KnownPool, ...] = (
    KnownPool(chains.PUMP_WETH_POOL, chains.PUMP, chains.WETH, FeeTier.HIGH),
    KnownPool(chains.ENB_WETH_POOL, chains.ENB, chains.WETH, FeeTier.HIGH),
)


@dataclass(frozen=True)
class Pool:
    """Snapshot of a concentrated-liquidity pool.

    token0 sorts before token1 by (wrapped) address. Build instances with
    ``Pool.create`` which sorts the tokens and clamps the tick.
    """

    address: str
    token0: Token
    token1: Token
    fee: int
    sqrt_price_x96: int
    tick: int
    liquidity: int

    def __post_init__(self):
        if not self.token0.sorts_before(self.token1):
            raise ValueError(f"Pool {self.address}: token0 must sort before token1")

    @classmethod
    def create(
        cls,
        address: str,
        token_a: Token,
        token_b: Token,
        fee: int,
        sqrt_price_x96: int,
        tick: int,
        liquidity: int,
    ) -> "Pool":
        token0, token1 = (token_a, token_b) if token_a.sorts_before(token_b) else (token_b, token_a)
        return cls(
            address=to_checksum_address(address),
            token0=token0,
            token1=token1,
            fee=int(fee),
            sqrt_price_x96=int(sqrt_price_x96),
            tick=v3_math.clamp_tick(int(tick)),
            liquidity=int(liquidity),
        )

    @property
    def fee_percent(self) -> Decimal:
        return Decimal(self.fee) / Decimal(10000)

    @property
    def has_liquidity(self) -> bool:
        return self.liquidity > 0 and self.sqrt_price_x96 > 0

    def involves(self, token: Token) -> bool:
        return self.token0.same_pool_token(token) or self.token1.same_pool_token(token)

    def other(self, token: Token) -> Token:
        if self.token0.same_pool_token(token):
            return self.token1
        if self.token1.same_pool_token(token):
            return self.token0
        raise ValueError(f"{token.symbol} is not in pool {self.address}")

    def zero_for_one(self, token_in: Token) -> bool:
        if not self.involves(token_in):
            raise ValueError(f"{token_in.symbol} is not in pool {self.address}")
        return self.token0.same_pool_token(token_in)

    def price_of(self, token: Token) -> Decimal:
        """Human price of ``token`` denominated in the other pool token.

        token1 per token0 = sqrtP² / 2^192 * 10^(decimals0 - decimals1).
        """
        if self.sqrt_price_x96 == 0:
            return Decimal(0)
        with localcontext() as ctx:
            ctx.prec = 60
            raw = Decimal(self.sqrt_price_x96) ** 2 / Decimal(v3_math.Q192)
            price1_per_0 = raw.scaleb(self.token0.decimals - self.token1.decimals)
            if self.token0.same_pool_token(token):
                result = price1_per_0
            elif self.token1.same_pool_token(token):
                result = Decimal(1) / price1_per_0
            else:
                raise ValueError(f"{token.symbol} is not in pool {self.address}")
        return +result

    def with_price(self, sqrt_price_x96: int) -> "Pool":
        # Tick is not recomputed; only sqrt price drives the in-range math
        return replace(self, sqrt_price_x96=sqrt_price_x96)

    def get_output_amount(self, token_in: Token, amount_in: int) -> tuple[int, "Pool"]:
        """Exact-input swap: (amount out, pool after the trade)."""
        amount_out, sqrt_next = v3_math.compute_exact_input(
            self.sqrt_price_x96, self.liquidity, amount_in, self.fee, self.zero_for_one(token_in)
        )
        return amount_out, self.with_price(sqrt_next)

    def get_input_amount(self, token_out: Token, amount_out: int) -> tuple[int, "Pool"]:
        """Exact-output swap: (amount in including fee, pool after the trade).

        Raises:
            SwapMathError: The active range cannot supply ``amount_out``
        """
        zero_for_one = not self.zero_for_one(token_out)
        amount_in, sqrt_next = v3_math.compute_exact_output(
            self.sqrt_price_x96, self.liquidity, amount_out, self.fee, zero_for_one
        )
        return amount_in, self.with_price(sqrt_next)

    def mid_quote(self, token_in: Token, amount_in: int) -> int:
        """Output at the current mid price, ignoring fee and price movement."""
        return v3_math.mid_price_quote(self.sqrt_price_x96, amount_in, self.zero_for_one(token_in))


def find_known_pool(address_a: str, address_b: str, known_pools=KNOWN_POOLS) -> Optional[KnownPool]:
    for known in known_pools:
        if known.matches(address_a, address_b):
            return known
    return None
