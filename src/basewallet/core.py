"""Wallet core facade.

One WalletCore instance owns the chain provider and every component built on
it. The bot and the API receive it by injection; nothing here is global.
"""

import logging
from decimal import Decimal
from typing import Optional

from basewallet.chain.provider import ChainDataProvider
from basewallet.config import Settings, get_settings
from basewallet.pools.resolver import PoolResolver
from basewallet.pricing.oracle import PriceOracle
from basewallet.routing.base import Quote
from basewallet.routing.calldata import build_swap_transaction
from basewallet.routing.quote_engine import QuoteEngine
from basewallet.services.balances import BalanceAggregator, TokenBalance
from basewallet.tokens.registry import Token, TokenRegistry
from basewallet.utils.deadline import Deadline

logger = logging.getLogger(__name__)


class WalletCore:
    """Quotes, prices, balances and token lookups over one RPC provider."""

    def __init__(
        self,
        provider,
        registry: TokenRegistry,
        resolver: PoolResolver,
        oracle: PriceOracle,
        engine: QuoteEngine,
        balances: BalanceAggregator,
        settings: Optional[Settings] = None,
    ):
        self.provider = provider
        self.registry = registry
        self.resolver = resolver
        self.oracle = oracle
        self.engine = engine
        self.balances = balances
        self.settings = settings or get_settings()

    def new_deadline(self, operation: str = "request") -> Deadline:
        """Deadline using the configured per-request timeout."""
        return Deadline(timeout=self.settings.quote_timeout, operation=operation)

    async def resolve_token(self, symbol_or_address: str, deadline: Optional[Deadline] = None) -> Token:
        return await self.registry.resolve(symbol_or_address, deadline=deadline)

    async def quote_exact_input(
        self,
        token_in: str,
        token_out: str,
        amount_in,
        slippage_tolerance=None,
        deadline: Optional[Deadline] = None,
    ) -> Quote:
        return await self.engine.quote_exact_input(
            token_in, token_out, amount_in, slippage_tolerance=slippage_tolerance, deadline=deadline
        )

    async def quote_exact_output(
        self,
        token_in: str,
        token_out: str,
        amount_out,
        max_amount_in=None,
        slippage_tolerance=None,
        deadline: Optional[Deadline] = None,
    ) -> Quote:
        return await self.engine.quote_exact_output(
            token_in,
            token_out,
            amount_out,
            max_amount_in=max_amount_in,
            slippage_tolerance=slippage_tolerance,
            deadline=deadline,
        )

    async def price_of(self, token: str, deadline: Optional[Deadline] = None) -> Decimal:
        """USD price of a token given by symbol or address."""
        resolved = await self.registry.resolve(token, deadline=deadline)
        return await self.oracle.price_of(resolved, deadline=deadline)

    async def all_balances(self, address: str, deadline: Optional[Deadline] = None) -> list[TokenBalance]:
        return await self.balances.all_balances(address, deadline=deadline)

    def build_swap_transaction(self, quote: Quote, recipient: str) -> dict:
        return build_swap_transaction(quote, recipient)

    async def check_health(self, deadline: Optional[Deadline] = None) -> dict:
        """Chain id probe through the provider's retry policy."""
        chain_id = await self.provider.get_chain_id(deadline=deadline)
        return {
            "chain_id": chain_id,
            "expected_chain_id": self.settings.chain_id,
            "chain_ok": chain_id == self.settings.chain_id,
            "reconnects": getattr(self.provider, "reconnects", 0),
        }

    async def aclose(self) -> None:
        await self.provider.aclose()
        logger.info("Wallet core closed")


def create_core(settings: Optional[Settings] = None, provider=None) -> WalletCore:
    """Build a WalletCore from settings.

    Args:
        settings: Application settings (cached settings when None)
        provider: Chain provider override (a ChainDataProvider by default)
    """
    settings = settings or get_settings()
    provider = provider or ChainDataProvider.from_settings(settings)

    registry = TokenRegistry(provider=provider, max_runtime_tokens=settings.max_runtime_tokens)
    resolver = PoolResolver.from_settings(provider, settings)
    oracle = PriceOracle(registry, resolver, fallback_eth_price=settings.fallback_eth_price)
    engine = QuoteEngine(
        registry,
        resolver,
        router_address=settings.swap_router,
        default_slippage=settings.default_slippage,
    )
    balances = BalanceAggregator(provider, registry, oracle)

    logger.info(f"Wallet core ready (chain {settings.chain_id})")
    return WalletCore(provider, registry, resolver, oracle, engine, balances, settings=settings)
