"""Services built on the chain provider."""

from basewallet.services.balances import BalanceAggregator, TokenBalance

__all__ = ["BalanceAggregator", "TokenBalance"]
