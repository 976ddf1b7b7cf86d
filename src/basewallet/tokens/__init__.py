"""Token registry and price policy."""

from basewallet.tokens.registry import (
    DEFAULT_PRICE_CONFIG,
    Token,
    TokenPriceConfig,
    TokenRegistry,
    build_base_tokens,
)

__all__ = [
    "DEFAULT_PRICE_CONFIG",
    "Token",
    "TokenPriceConfig",
    "TokenRegistry",
    "build_base_tokens",
]
