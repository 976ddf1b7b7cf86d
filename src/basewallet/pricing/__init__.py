"""USD pricing."""

from basewallet.pricing.oracle import PriceOracle

__all__ = ["PriceOracle"]
