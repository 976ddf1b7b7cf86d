"""Concentrated-liquidity pools: model, math and discovery."""

from basewallet.pools.base import KNOWN_POOLS, SEARCH_FEE_TIERS, FeeTier, KnownPool, Pool
from basewallet.pools.resolver import PoolResolver
from basewallet.pools.v3_math import SwapMathError

__all__ = [
    "KNOWN_POOLS",
    "SEARCH_FEE_TIERS",
    "FeeTier",
    "KnownPool",
    "Pool",
    "PoolResolver",
    "SwapMathError",
]
