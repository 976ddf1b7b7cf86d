"""USD price oracle backed by on-chain pool prices.

ETH/WETH come from the WETH/USDC 0.05% pool, with a cbETH cross-rate as the
first fallback and a configured constant as the last resort. Other tokens
follow their TokenPriceConfig: a static price, or a pool price in WETH or
USDC terms (WETH prices are converted with the native USD price).
"""

import asyncio
import logging
from decimal import Decimal
from typing import Optional

from basewallet import chains
from basewallet.errors import DeadlineExceededError, WalletCoreError
from basewallet.pools.base import FeeTier, Pool
from basewallet.pools.resolver import PoolResolver
from basewallet.tokens.registry import Token, TokenPriceConfig, TokenRegistry
from basewallet.utils.deadline import Deadline

logger = logging.getLogger(__name__)

ZERO = Decimal(0)


class PriceOracle:
    """Derives USD prices; never raises for a missing or failing price source."""

    def __init__(
        self,
        registry: TokenRegistry,
        resolver: PoolResolver,
        fallback_eth_price: Decimal = Decimal("2000"),
        eth_usdc_pool: str = chains.WETH_USDC_POOL,
    ):
        self.registry = registry
        self.resolver = resolver
        self.fallback_eth_price = Decimal(fallback_eth_price)
        self.eth_usdc_pool = eth_usdc_pool

    async def price_of(self, token: Token, deadline: Optional[Deadline] = None) -> Decimal:
        """USD price of one whole ``token``.

        Returns 0 for tokens with no price policy or no usable price.

        Raises:
            DeadlineExceededError: Deadline elapsed or was cancelled
        """
        if token.is_native or token.same_pool_token(self.registry.wrapped_native):
            return await self.native_price(deadline=deadline)

        config = self.registry.price_config(token)
        if config is None:
            logger.debug(f"No price config for {token.symbol}")
            return ZERO
        if not config.use_pool:
            return config.static_price

        try:
            price = await self._pool_price(token, config, deadline)
        except DeadlineExceededError:
            raise
        except WalletCoreError as e:
            logger.warning(f"Pool price for {token.symbol} failed: {e}; using static price")
            return config.static_price

        if price is None or price <= 0:
            logger.warning(f"No pool price for {token.symbol}; using static price {config.static_price}")
            return config.static_price
        return price

    async def _pool_price(
        self, token: Token, config: TokenPriceConfig, deadline: Optional[Deadline]
    ) -> Optional[Decimal]:
        pair = self.registry.by_symbol(config.pair_with)
        address = config.pool_address or self.resolver.pool_address(token, pair, config.pool_fee)

        pool = await self.resolver.load_pool(address, token, pair, deadline=deadline)
        if pool is None:
            return None

        price = pool.price_of(token)
        if pair.same_pool_token(self.registry.wrapped_native):
            price = price * await self.native_price(deadline=deadline)
        return price

    async def native_price(self, deadline: Optional[Deadline] = None) -> Decimal:
        """USD per ETH: WETH/USDC pool, then cbETH cross-rate, then the constant."""
        try:
            price = await self._weth_usdc_price(deadline)
            if price:
                return price
            logger.warning("WETH/USDC pool unavailable, trying cbETH cross-rate")
        except DeadlineExceededError:
            raise
        except WalletCoreError as e:
            logger.warning(f"WETH/USDC price failed: {e}; trying cbETH cross-rate")

        try:
            price = await self._cbeth_cross_price(deadline)
            if price:
                return price
            logger.warning("cbETH pools unavailable")
        except DeadlineExceededError:
            raise
        except WalletCoreError as e:
            logger.warning(f"cbETH cross-rate failed: {e}")

        logger.error(f"All ETH price sources failed, using fallback {self.fallback_eth_price}")
        return self.fallback_eth_price

    async def _weth_usdc_price(self, deadline: Optional[Deadline]) -> Optional[Decimal]:
        weth = self.registry.wrapped_native
        usdc = self.registry.by_symbol("USDC")
        pool = await self.resolver.load_pool(self.eth_usdc_pool, weth, usdc, deadline=deadline)
        return _positive_price(pool, weth)

    async def _cbeth_cross_price(self, deadline: Optional[Deadline]) -> Optional[Decimal]:
        weth = self.registry.wrapped_native
        usdc = self.registry.by_symbol("USDC")
        cbeth = self.registry.by_symbol("cbETH")

        usdc_pool, weth_pool = await asyncio.gather(
            self.resolver.load_pool(
                self.resolver.pool_address(cbeth, usdc, FeeTier.MEDIUM), cbeth, usdc, deadline=deadline
            ),
            self.resolver.load_pool(
                self.resolver.pool_address(cbeth, weth, FeeTier.LOW), cbeth, weth, deadline=deadline
            ),
        )
        usd_per_cbeth = _positive_price(usdc_pool, cbeth)
        weth_per_cbeth = _positive_price(weth_pool, cbeth)
        if not usd_per_cbeth or not weth_per_cbeth:
            return None
        return usd_per_cbeth / weth_per_cbeth


def _positive_price(pool: Optional[Pool], token: Token) -> Optional[Decimal]:
    if pool is None:
        return None
    price = pool.price_of(token)
    return price if price > 0 else None
