"""Portfolio balances for an address on Base.

Reads the native balance and every tracked ERC-20 balance concurrently and
values the non-zero ones in USD.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from eth_utils import is_address, to_checksum_address

from basewallet.errors import DeadlineExceededError, InvalidAddressError, WalletCoreError
from basewallet.pricing.oracle import PriceOracle
from basewallet.tokens.registry import Token, TokenRegistry
from basewallet.utils.deadline import Deadline
from basewallet.utils.units import format_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenBalance:
    """Balance of one token held by an address."""

    symbol: str
    balance: Decimal
    raw_balance: int
    usd_value: Decimal
    token: Token

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "address": self.token.address,
            "balance": str(self.balance),
            "raw_balance": str(self.raw_balance),
            "usd_value": str(self.usd_value),
        }


class BalanceAggregator:
    """Collects non-zero balances of the tracked tokens."""

    def __init__(self, provider, registry: TokenRegistry, oracle: PriceOracle):
        self.provider = provider
        self.registry = registry
        self.oracle = oracle

    async def all_balances(self, address: str, deadline: Optional[Deadline] = None) -> list[TokenBalance]:
        """Non-zero balances in registry order (native first), valued in USD.

        A token whose balance read fails is logged and left out; a token
        whose price cannot be determined is reported with usd_value 0.

        Raises:
            InvalidAddressError: ``address`` is not a well-formed address
            DeadlineExceededError: Deadline elapsed or was cancelled
        """
        if not isinstance(address, str) or not is_address(address.strip()):
            raise InvalidAddressError(f"Invalid address: {address}")
        owner = to_checksum_address(address.strip())

        tokens = self.registry.tokens
        raw_balances = await asyncio.gather(*(self._read_balance(token, owner, deadline) for token in tokens))

        held = [(token, raw) for token, raw in zip(tokens, raw_balances) if raw]
        if not held:
            logger.info(f"No balances found for {owner}")
            return []

        prices = await asyncio.gather(*(self._price(token, deadline) for token, _ in held))

        balances = []
        for (token, raw), price in zip(held, prices):
            amount = format_units(raw, token.decimals)
            balances.append(
                TokenBalance(
                    symbol=token.symbol,
                    balance=amount,
                    raw_balance=raw,
                    usd_value=amount * price,
                    token=token,
                )
            )
        logger.info(f"Found {len(balances)} non-zero balance(s) for {owner}")
        return balances

    async def _read_balance(self, token: Token, owner: str, deadline: Optional[Deadline]) -> Optional[int]:
        try:
            if token.is_native:
                return await self.provider.get_native_balance(owner, deadline=deadline)
            return await self.provider.get_erc20_balance(token.address, owner, deadline=deadline)
        except DeadlineExceededError:
            raise
        except WalletCoreError as e:
            logger.warning(f"Failed to read {token.symbol} balance for {owner}: {e}")
            return None

    async def _price(self, token: Token, deadline: Optional[Deadline]) -> Decimal:
        try:
            return await self.oracle.price_of(token, deadline=deadline)
        except DeadlineExceededError:
            raise
        except WalletCoreError as e:
            logger.warning(f"Failed to price {token.symbol}: {e}")
            return Decimal(0)
