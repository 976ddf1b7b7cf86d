"""Swap quoting over Uniswap V3 pools on Base.

Quotes are computed locally from pool snapshots (slot0 + active liquidity)
using the in-range concentrated-liquidity formulas. Routes are a direct pool
or a two-hop path through WETH, then USDC.
"""

import asyncio
import logging
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal, localcontext
from typing import Iterable, Optional

from basewallet import chains
from basewallet.errors import (
    InsufficientLiquidityError,
    InvalidSlippageError,
    NoRouteError,
    QuoteComputationError,
    ZeroAmountError,
)
from basewallet.pools.base import Pool
from basewallet.pools.resolver import PoolResolver
from basewallet.pools.v3_math import SwapMathError
from basewallet.routing.base import Quote, Route, SwapParams, TradeType
from basewallet.routing.calldata import route_path
from basewallet.tokens.registry import Token, TokenRegistry
from basewallet.utils.deadline import Deadline
from basewallet.utils.units import AmountLike, format_units, parse_units, require_positive, to_decimal

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)
IMPACT_QUANTUM = Decimal("0.0001")


class QuoteEngine:
    """Computes exact-input and exact-output quotes without executing trades."""

    def __init__(
        self,
        registry: TokenRegistry,
        resolver: PoolResolver,
        router_address: str,
        default_slippage: Decimal = Decimal("0.5"),
        routing_tokens: Iterable[str] = chains.ROUTING_TOKENS,
    ):
        """Initialize quote engine.

        Args:
            registry: Token registry for symbol/address resolution
            resolver: Pool resolver
            router_address: SwapRouter02 address placed in SwapParams
            default_slippage: Slippage tolerance in percent when none is given
            routing_tokens: Intermediate token addresses, in preference order
        """
        self.registry = registry
        self.resolver = resolver
        self.router_address = router_address
        self.default_slippage = self.validate_slippage(default_slippage)
        self.routing_tokens = tuple(routing_tokens)

    @staticmethod
    def validate_slippage(value: Optional[AmountLike]) -> Decimal:
        """Slippage tolerance in percent, 0 <= s < 100."""
        try:
            slippage = to_decimal(value)
        except ValueError:
            raise InvalidSlippageError(f"Invalid slippage: {value!r}")
        if slippage < 0 or slippage >= HUNDRED:
            raise InvalidSlippageError(f"Slippage must be between 0 and 100 percent (got {value})")
        return slippage

    def _slippage(self, value: Optional[AmountLike]) -> Decimal:
        return self.default_slippage if value is None else self.validate_slippage(value)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def quote_exact_input(
        self,
        token_in: str,
        token_out: str,
        amount_in: AmountLike,
        slippage_tolerance: Optional[AmountLike] = None,
        deadline: Optional[Deadline] = None,
    ) -> Quote:
        """Quote selling exactly ``amount_in`` of ``token_in``.

        Args:
            token_in: Symbol or address of the token sold
            token_out: Symbol or address of the token bought
            amount_in: Whole-token amount to sell
            slippage_tolerance: Percent (0.5 = 0.5%); engine default when None
            deadline: Optional deadline for every chain read

        Returns:
            Quote with expected and minimum output

        Raises:
            ZeroAmountError: amount_in <= 0
            InvalidSlippageError: Slippage outside [0, 100)
            UnsupportedTokenError: Token cannot be resolved
            NoRouteError: No direct or two-hop pool with liquidity
            ProviderError: Chain reads failed after retries
        """
        amount = require_positive(amount_in)
        slippage = self._slippage(slippage_tolerance)
        tin, tout = await self._resolve_pair(token_in, token_out, deadline)

        raw_in = parse_units(amount, tin.decimals)
        if raw_in <= 0:
            raise ZeroAmountError(amount_in)

        route = await self.find_route(tin, tout, deadline=deadline)
        logger.info(f"Quoting {amount} {tin.symbol} -> {tout.symbol} via {route}")

        try:
            raw_out = simulate_exact_input(route, raw_in)
        except SwapMathError as e:
            raise InsufficientLiquidityError(
                f"Not enough liquidity to sell {amount} {tin.symbol}: {e}",
                token_in=tin.symbol,
                token_out=tout.symbol,
            )
        if raw_out <= 0:
            raise QuoteComputationError(f"{amount} {tin.symbol} is too small to produce any {tout.symbol}")

        raw_min = apply_slippage_down(raw_out, slippage)
        impact = price_impact(mid_route_quote(route, raw_in), raw_out)

        params = SwapParams(
            router=self.router_address,
            pool_address=route.pools[0].address,
            path=route_path(route.path, route.fees, TradeType.EXACT_INPUT),
            amount_in=raw_in,
            amount_out=raw_min,
            value=raw_in if tin.is_native else 0,
        )
        quote = Quote(
            trade_type=TradeType.EXACT_INPUT,
            token_in=tin,
            token_out=tout,
            amount_in=amount,
            expected_output=format_units(raw_out, tout.decimals),
            minimum_output=format_units(raw_min, tout.decimals),
            price_impact=impact,
            fee=route.total_fee_percent,
            route=route,
            swap_params=params,
            slippage_tolerance=slippage,
            maximum_input=amount,
        )
        logger.info(
            f"Quote: {amount} {tin.symbol} -> {quote.expected_output} {tout.symbol} "
            f"(min {quote.minimum_output}, impact {impact}%)"
        )
        return quote

    async def quote_exact_output(
        self,
        token_in: str,
        token_out: str,
        amount_out: AmountLike,
        max_amount_in: Optional[AmountLike] = None,
        slippage_tolerance: Optional[AmountLike] = None,
        deadline: Optional[Deadline] = None,
    ) -> Quote:
        """Quote buying exactly ``amount_out`` of ``token_out``.

        ``amount_in`` on the returned quote is the required input; the
        router bound in SwapParams adds slippage, capped at ``max_amount_in``.

        Raises:
            ZeroAmountError: amount_out <= 0 or max_amount_in <= 0
            InsufficientLiquidityError: Required input exceeds max_amount_in,
                or the pools cannot supply amount_out
            QuoteComputationError: Pool math returned a zero input
            NoRouteError, UnsupportedTokenError, ProviderError: as for exact input
        """
        amount = require_positive(amount_out)
        max_in = require_positive(max_amount_in) if max_amount_in is not None else None
        slippage = self._slippage(slippage_tolerance)
        tin, tout = await self._resolve_pair(token_in, token_out, deadline)

        raw_out = parse_units(amount, tout.decimals)
        if raw_out <= 0:
            raise ZeroAmountError(amount_out)

        route = await self.find_route(tin, tout, deadline=deadline)
        logger.info(f"Quoting {tin.symbol} -> exactly {amount} {tout.symbol} via {route}")

        try:
            raw_required = simulate_exact_output(route, raw_out)
        except SwapMathError as e:
            raise InsufficientLiquidityError(
                f"Pool liquidity cannot supply {amount} {tout.symbol}: {e}",
                token_in=tin.symbol,
                token_out=tout.symbol,
            )
        if raw_required <= 0:
            raise QuoteComputationError(f"Computed zero input for {amount} {tout.symbol}")

        required = format_units(raw_required, tin.decimals)
        raw_max = parse_units(max_in, tin.decimals) if max_in is not None else None

        if raw_max is not None and raw_required > raw_max:
            achievable = self._achievable_output(route, raw_max)
            logger.info(
                f"Exact output {amount} {tout.symbol} needs {required} {tin.symbol}, "
                f"budget {max_in} {tin.symbol}"
            )
            raise InsufficientLiquidityError(
                f"Price too high: {required} {tin.symbol} required, maximum {max_in} {tin.symbol}",
                token_in=tin.symbol,
                token_out=tout.symbol,
                required_input=required,
                max_input=max_in,
                achievable_output=achievable,
            )

        raw_bound = apply_slippage_up(raw_required, slippage)
        if raw_max is not None:
            raw_bound = min(raw_bound, raw_max)

        impact = price_impact(mid_route_quote(route, raw_required), raw_out)
        params = SwapParams(
            router=self.router_address,
            pool_address=route.pools[0].address,
            path=route_path(route.path, route.fees, TradeType.EXACT_OUTPUT),
            amount_in=raw_bound,
            amount_out=raw_out,
            value=raw_bound if tin.is_native else 0,
        )
        output = format_units(raw_out, tout.decimals)
        quote = Quote(
            trade_type=TradeType.EXACT_OUTPUT,
            token_in=tin,
            token_out=tout,
            amount_in=required,
            expected_output=output,
            minimum_output=output,
            price_impact=impact,
            fee=route.total_fee_percent,
            route=route,
            swap_params=params,
            slippage_tolerance=slippage,
            maximum_input=format_units(raw_bound, tin.decimals),
        )
        logger.info(
            f"Quote: {required} {tin.symbol} (max {quote.maximum_input}) -> {output} {tout.symbol} "
            f"(impact {impact}%)"
        )
        return quote

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def find_route(self, token_in: Token, token_out: Token, deadline: Optional[Deadline] = None) -> Route:
        """Direct pool if one exists, else the first usable two-hop route.

        Raises:
            NoRouteError: Same token on both sides, or no usable route
        """
        if token_in.same_pool_token(token_out):
            raise NoRouteError(token_in.symbol, token_out.symbol, "cannot swap a token for itself")

        direct = await self.resolver.find_pool(token_in, token_out, deadline=deadline)
        if direct is not None:
            return Route(pools=(direct,), path=(token_in, token_out))

        for address in self.routing_tokens:
            middle = self.registry.get(address)
            if middle is None or middle.same_pool_token(token_in) or middle.same_pool_token(token_out):
                continue

            first, second = await asyncio.gather(
                self.resolver.find_pool(token_in, middle, deadline=deadline),
                self.resolver.find_pool(middle, token_out, deadline=deadline),
            )
            if first is not None and second is not None:
                logger.debug(f"Two-hop route {token_in.symbol} -> {middle.symbol} -> {token_out.symbol}")
                return Route(pools=(first, second), path=(token_in, middle, token_out))

        raise NoRouteError(token_in.symbol, token_out.symbol)

    async def _resolve_pair(
        self, token_in: str, token_out: str, deadline: Optional[Deadline]
    ) -> tuple[Token, Token]:
        tin, tout = await asyncio.gather(
            self.registry.resolve(token_in, deadline=deadline),
            self.registry.resolve(token_out, deadline=deadline),
        )
        return tin, tout

    def _achievable_output(self, route: Route, raw_max_in: int) -> Optional[Decimal]:
        """Exact-input output for the caller's budget over the same snapshot."""
        try:
            raw = simulate_exact_input(route, raw_max_in)
        except SwapMathError as e:
            logger.debug(f"Could not compute achievable output: {e}")
            return None
        return format_units(raw, route.token_out.decimals)


# ----------------------------------------------------------------------
# Route simulation
# ----------------------------------------------------------------------


def simulate_exact_input(route: Route, raw_in: int) -> int:
    """Hop-by-hop exact-input simulation.

    A hop through a pool already traded on earlier in the route sees that
    pool's post-trade price.
    """
    states: dict[str, Pool] = {}
    amount = raw_in
    for pool, token_in in zip(route.pools, route.path):
        pool = states.get(pool.address, pool)
        amount, after = pool.get_output_amount(token_in, amount)
        states[pool.address] = after
    return amount


def simulate_exact_output(route: Route, raw_out: int) -> int:
    """Backwards simulation: input needed for each hop, last hop first."""
    states: dict[str, Pool] = {}
    amount = raw_out
    for pool, token_out in zip(reversed(route.pools), reversed(route.path[1:])):
        pool = states.get(pool.address, pool)
        amount, after = pool.get_input_amount(token_out, amount)
        states[pool.address] = after
    return amount


def mid_route_quote(route: Route, raw_in: int) -> int:
    """Output at current mid prices along the route (no fee, no movement)."""
    amount = raw_in
    for pool, token_in in zip(route.pools, route.path):
        amount = pool.mid_quote(token_in, amount)
    return amount


def price_impact(mid_output: int, actual_output: int) -> Decimal:
    """(mid - actual) / mid * 100, fee included, never negative."""
    if mid_output <= 0:
        return Decimal(0)
    with localcontext() as ctx:
        ctx.prec = 80
        impact = (Decimal(mid_output - actual_output) / Decimal(mid_output)) * HUNDRED
        impact = impact.quantize(IMPACT_QUANTUM)
    return max(impact, Decimal(0))


def apply_slippage_down(raw_amount: int, slippage: Decimal) -> int:
    """floor(amount * (1 - s/100))."""
    with localcontext() as ctx:
        ctx.prec = 80
        value = Decimal(raw_amount) * (HUNDRED - slippage) / HUNDRED
        return int(value.to_integral_value(rounding=ROUND_FLOOR))


def apply_slippage_up(raw_amount: int, slippage: Decimal) -> int:
    """ceil(amount * (1 + s/100))."""
    with localcontext() as ctx:
        ctx.prec = 80
        value = Decimal(raw_amount) * (HUNDRED + slippage) / HUNDRED
        return int(value.to_integral_value(rounding=ROUND_CEILING))
