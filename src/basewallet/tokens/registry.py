"""Token registry: symbol/address resolution and per-token price policy."""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

from eth_utils import is_address, to_checksum_address

from basewallet import chains
from basewallet.errors import ContractCallError, UnsupportedTokenError
from basewallet.utils.deadline import Deadline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Token:
    """An ERC-20 token, or the native asset (zero address).

    The native asset carries ``wrapped_address`` so pool lookups use its
    wrapped ERC-20 form while the display symbol stays distinct.
    """

    symbol: str
    address: str
    decimals: int
    name: str = ""
    wrapped_address: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "address", to_checksum_address(self.address))
        if self.wrapped_address:
            object.__setattr__(self, "wrapped_address", to_checksum_address(self.wrapped_address))
        if not self.name:
            object.__setattr__(self, "name", self.symbol)
        if not 0 <= self.decimals <= 77:
            raise ValueError(f"Invalid decimals for {self.symbol}: {self.decimals}")

    @property
    def is_native(self) -> bool:
        return self.address == chains.NATIVE

    @property
    def pool_address(self) -> str:
        """Address used for pool lookups and ordering."""
        return self.wrapped_address or self.address

    def sorts_before(self, other: "Token") -> bool:
        return self.pool_address.lower() < other.pool_address.lower()

    def same_pool_token(self, other: "Token") -> bool:
        return self.pool_address.lower() == other.pool_address.lower()

    def __str__(self) -> str:
        return self.symbol


@dataclass(frozen=True)
class TokenPriceConfig:
    """How a token's USD price is derived.

    use_pool: derive from a pool; otherwise return ``static_price``
    static_price: fallback price (0 = unpriced)
    pair_with: symbol of the pool counterpart ("WETH" or "USDC")
    pool_fee: fee tier of the pool to query when no address is pinned
    pool_address: pinned pool address
    """

    use_pool: bool = False
    static_price: Decimal = Decimal("0")
    pair_with: str = "WETH"
    pool_fee: int = 10000
    pool_address: Optional[str] = None


DEFAULT_PRICE_CONFIG: dict[str, TokenPriceConfig] = {
    "ETH": TokenPriceConfig(use_pool=True, pair_with="USDC", pool_fee=500),
    "WETH": TokenPriceConfig(use_pool=True, pair_with="USDC", pool_fee=500),
    "USDC": TokenPriceConfig(use_pool=False, static_price=Decimal("1")),
    "USDBC": TokenPriceConfig(use_pool=False, static_price=Decimal("1")),
    "CBETH": TokenPriceConfig(use_pool=True, pair_with="WETH", pool_fee=500),
    "PUMP": TokenPriceConfig(
        use_pool=True, pair_with="WETH", pool_fee=10000, pool_address=chains.PUMP_WETH_POOL
    ),
    "ENB": TokenPriceConfig(
        use_pool=True, pair_with="WETH", pool_fee=10000, pool_address=chains.ENB_WETH_POOL
    ),
}


def build_base_tokens() -> list[Token]:
    """Built-in Base token list, native asset first."""
    tokens = []
    for spec in chains.BASE_TOKEN_SPECS:
        wrapped = chains.WETH if spec.address == chains.NATIVE else None
        tokens.append(Token(spec.symbol, spec.address, spec.decimals, spec.name, wrapped))
    return tokens


class TokenRegistry:
    """Resolves symbols and addresses to Token records.

    Resolution order: built-in table, tokens registered at runtime, then (for
    well-formed addresses) on-chain ERC-20 metadata. Tokens discovered on
    chain are registered, so later lookups return the same object.

    Runtime tokens never shadow a built-in symbol. A symbol claimed by more
    than one runtime token resolves by address only. At most
    ``max_runtime_tokens`` are kept; the oldest is dropped first.
    """

    def __init__(
        self,
        provider=None,
        tokens: Optional[Iterable[Token]] = None,
        price_configs: Optional[dict[str, TokenPriceConfig]] = None,
        max_runtime_tokens: int = 256,
    ):
        """Initialize registry.

        Args:
            provider: ChainDataProvider used for unknown addresses (optional)
            tokens: Fixed tracked token list (defaults to the Base list)
            price_configs: Symbol -> price policy
            max_runtime_tokens: Cap on tokens registered at runtime
        """
        self.provider = provider
        self._tracked: list[Token] = list(tokens) if tokens is not None else build_base_tokens()
        self._price_configs = dict(DEFAULT_PRICE_CONFIG if price_configs is None else price_configs)
        self._by_symbol: dict[str, Token] = {}
        self._by_address: dict[str, Token] = {}
        self._runtime: OrderedDict[str, Token] = OrderedDict()
        self.max_runtime_tokens = max_runtime_tokens
        for token in self._tracked:
            self._index(token)
        self._builtin_symbols = frozenset(self._by_symbol)

    def _index(self, token: Token) -> None:
        self._by_symbol.setdefault(token.symbol.upper(), token)
        self._by_address.setdefault(token.address.lower(), token)

    @property
    def tokens(self) -> list[Token]:
        """Fixed tracked token list (built-in table order)."""
        return list(self._tracked)

    @property
    def supported_symbols(self) -> list[str]:
        return [token.symbol for token in self._tracked]

    @property
    def native(self) -> Token:
        return self._by_address[chains.NATIVE.lower()]

    @property
    def wrapped_native(self) -> Token:
        return self._by_address[chains.WETH.lower()]

    def get(self, symbol_or_address: str) -> Optional[Token]:
        """Look up without touching the network."""
        key = symbol_or_address.strip()
        if key.lower().startswith("0x"):
            return self._by_address.get(key.lower())
        return self._by_symbol.get(key.upper())

    def by_symbol(self, symbol: str) -> Token:
        """Built-in or registered token by symbol; raises UnsupportedTokenError."""
        token = self._by_symbol.get(symbol.strip().upper())
        if token is None:
            raise UnsupportedTokenError(symbol, self.supported_symbols)
        return token

    def register(self, token: Token) -> Token:
        """Add a token; returns the already-registered record for a known address."""
        address = token.address.lower()
        existing = self._by_address.get(address)
        if existing is not None:
            return existing

        self._runtime[address] = token
        self._by_address[address] = token
        self._reindex_symbol(token.symbol.upper())
        logger.info(f"Registered token {token.symbol} at {token.address}")

        while len(self._runtime) > self.max_runtime_tokens:
            old_address, old = self._runtime.popitem(last=False)
            del self._by_address[old_address]
            self._reindex_symbol(old.symbol.upper())
            logger.debug(f"Dropped runtime token {old.symbol} at {old.address}")
        return token

    def _reindex_symbol(self, symbol: str) -> None:
        if symbol in self._builtin_symbols:
            return
        claims = [t for t in self._runtime.values() if t.symbol.upper() == symbol]
        if len(claims) == 1:
            self._by_symbol[symbol] = claims[0]
        else:
            if len(claims) > 1:
                logger.info(f"Symbol {symbol} is ambiguous; resolve it by address")
            self._by_symbol.pop(symbol, None)

    def price_config(self, token: Token) -> Optional[TokenPriceConfig]:
        """Price policy of a built-in token; runtime tokens have none."""
        if token.address.lower() in self._runtime:
            return None
        return self._price_configs.get(token.symbol.upper())

    async def resolve(self, symbol_or_address: str, deadline: Optional[Deadline] = None) -> Token:
        """Resolve a symbol or address to a Token.

        Raises:
            UnsupportedTokenError: Unknown symbol, malformed address, or a
                contract that does not answer ERC-20 metadata calls
            ProviderError: Metadata read failed after retries
        """
        if not symbol_or_address or not symbol_or_address.strip():
            raise UnsupportedTokenError(repr(symbol_or_address), self.supported_symbols)

        key = symbol_or_address.strip()
        token = self.get(key)
        if token is not None:
            return token

        if not key.lower().startswith("0x"):
            raise UnsupportedTokenError(key, self.supported_symbols)
        if not is_address(key):
            raise UnsupportedTokenError(key, self.supported_symbols, reason="malformed address")
        if self.provider is None:
            raise UnsupportedTokenError(key, self.supported_symbols)

        address = to_checksum_address(key)
        try:
            metadata = await self.provider.get_token_metadata(address, deadline=deadline)
        except ContractCallError as e:
            logger.warning(f"Token metadata lookup failed for {address}: {e}")
            raise UnsupportedTokenError(key, reason="not an ERC-20 token contract")

        return self.register(
            Token(
                symbol=metadata.symbol,
                address=address,
                decimals=metadata.decimals,
                name=metadata.name,
            )
        )
