"""Routing: swap quotes over Uniswap V3 pools.

- QuoteEngine: exact-input / exact-output quotes, direct or two-hop
- calldata: SwapRouter02 transactions for a quote
"""

from basewallet.routing.base import Quote, Route, SwapParams, TradeType
from basewallet.routing.calldata import build_swap_transaction, encode_path
from basewallet.routing.quote_engine import QuoteEngine

__all__ = [
    "Quote",
    "Route",
    "SwapParams",
    "TradeType",
    "QuoteEngine",
    "build_swap_transaction",
    "encode_path",
]
