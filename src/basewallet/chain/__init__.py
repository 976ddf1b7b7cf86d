"""Chain access: JSON-RPC provider with retries and ABI helpers."""

from basewallet.chain.abi import NATIVE_ADDRESS, compute_pool_address
from basewallet.chain.provider import ChainDataProvider, PoolState, RpcConnection, TokenMetadata

__all__ = [
    "NATIVE_ADDRESS",
    "compute_pool_address",
    "ChainDataProvider",
    "PoolState",
    "RpcConnection",
    "TokenMetadata",
]
