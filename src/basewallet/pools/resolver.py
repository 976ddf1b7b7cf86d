"""Pool discovery: curated pools first, then CREATE2 derivation per fee tier."""

import logging
from typing import Iterable, Optional

from basewallet.chain.abi import compute_pool_address
from basewallet.errors import ContractCallError
from basewallet.pools.base import KNOWN_POOLS, SEARCH_FEE_TIERS, KnownPool, Pool, find_known_pool
from basewallet.tokens.registry import Token
from basewallet.utils.deadline import Deadline

logger = logging.getLogger(__name__)


class PoolResolver:
    """Finds a usable pool (deployed, liquidity > 0) for a token pair.

    Read-only and stateless between calls: pools are fetched fresh for every
    lookup. Transient RPC failures propagate as ProviderError; a contract that
    reverts when read as a pool counts as "no pool".
    """

    def __init__(
        self,
        provider,
        factory: str,
        init_code_hash: str,
        known_pools: Iterable[KnownPool] = KNOWN_POOLS,
        fee_tiers: Iterable[int] = SEARCH_FEE_TIERS,
    ):
        self.provider = provider
        self.factory = factory
        self.init_code_hash = init_code_hash
        self.known_pools = tuple(known_pools)
        self.fee_tiers = tuple(fee_tiers)

    @classmethod
    def from_settings(cls, provider, settings) -> "PoolResolver":
        return cls(provider, settings.uniswap_v3_factory, settings.pool_init_code_hash)

    def pool_address(self, token_a: Token, token_b: Token, fee: int) -> str:
        """CREATE2 address of the factory pool for a pair and fee tier."""
        return compute_pool_address(
            self.factory, token_a.pool_address, token_b.pool_address, fee, self.init_code_hash
        )

    async def find_pool(
        self, token_a: Token, token_b: Token, deadline: Optional[Deadline] = None
    ) -> Optional[Pool]:
        """Best available pool for the pair, or None.

        Args:
            token_a: Either token (order does not matter)
            token_b: The other token
            deadline: Optional deadline for the chain reads

        Returns:
            Pool snapshot with liquidity > 0, or None when no pool is usable
        """
        if token_a.same_pool_token(token_b):
            return None

        known = find_known_pool(token_a.pool_address, token_b.pool_address, self.known_pools)
        if known is not None:
            pool = await self.load_pool(known.address, token_a, token_b, deadline=deadline)
            if pool is not None:
                return pool
            logger.info(
                f"Curated pool {known.address} for {token_a.symbol}/{token_b.symbol} "
                f"unusable, searching factory pools"
            )

        for fee in self.fee_tiers:
            address = self.pool_address(token_a, token_b, fee)
            pool = await self.load_pool(address, token_a, token_b, deadline=deadline)
            if pool is not None:
                logger.debug(f"Found {token_a.symbol}/{token_b.symbol} pool {address} (fee {fee})")
                return pool

        logger.info(f"No pool with liquidity for {token_a.symbol}/{token_b.symbol}")
        return None

    async def load_pool(
        self, address: str, token_a: Token, token_b: Token, deadline: Optional[Deadline] = None
    ) -> Optional[Pool]:
        """Read and verify the pool at ``address``.

        Returns None when no contract is deployed there, the contract does not
        behave as a pool, its token pair differs from (token_a, token_b), or it
        has no active liquidity. The fee read on chain is authoritative.
        """
        code = await self.provider.get_code(address, deadline=deadline)
        if not code:
            return None

        try:
            state = await self.provider.get_pool_state(address, deadline=deadline)
        except ContractCallError as e:
            logger.warning(f"Contract at {address} is not readable as a pool: {e}")
            return None

        expected = {token_a.pool_address.lower(), token_b.pool_address.lower()}
        if {state.token0.lower(), state.token1.lower()} != expected:
            logger.warning(
                f"Pool {address} holds {state.token0}/{state.token1}, "
                f"expected {token_a.symbol}/{token_b.symbol}"
            )
            return None

        if state.liquidity <= 0 or state.sqrt_price_x96 <= 0:
            logger.debug(f"Pool {address} has no active liquidity")
            return None

        return Pool.create(
            address=state.address,
            token_a=token_a,
            token_b=token_b,
            fee=state.fee,
            sqrt_price_x96=state.sqrt_price_x96,
            tick=state.tick,
            liquidity=state.liquidity,
        )
