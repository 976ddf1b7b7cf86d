"""Pytest configuration and fixtures."""

import os
from decimal import Decimal, localcontext
from typing import Optional

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["DEBUG"] = "true"
os.environ["BASE_RPC_URL"] = "http://rpc.test"
os.environ.pop("ALCHEMY_API_KEY", None)

from basewallet.chain.abi import compute_pool_address
from basewallet.chain.provider import PoolState, TokenMetadata
from basewallet.config import get_settings
from basewallet.core import create_core
from basewallet.errors import ContractCallError
from basewallet.tokens.registry import Token

OWNER = "0x000000000000000000000000000000000000dEaD"


def encode_sqrt_price(token_a: Token, token_b: Token, price) -> int:
    """sqrtPriceX96 for a pool where one ``token_a`` costs ``price`` ``token_b``."""
    with localcontext() as ctx:
        ctx.prec = 80
        price = Decimal(price)
        if token_a.sorts_before(token_b):
            token0, token1, price1_per_0 = token_a, token_b, price
        else:
            token0, token1, price1_per_0 = token_b, token_a, 1 / price
        raw = price1_per_0.scaleb(token1.decimals - token0.decimals)
        return int(raw.sqrt() * (2**96))


class FakeChain:
    """In-memory stand-in for ChainDataProvider.

    Holds deployed pools, token metadata and balances; ``fail`` makes a read
    method raise a given exception.
    """

    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        self.code: set[str] = set()
        self.pools: dict[str, PoolState] = {}
        self.metadata: dict[str, TokenMetadata] = {}
        self.native_balances: dict[str, int] = {}
        self.erc20_balances: dict[tuple[str, str], int] = {}
        self.reverting: set[str] = set()
        self.failures: dict[str, Exception] = {}
        self.failing_balances: dict[str, Exception] = {}
        self.calls: list[tuple[str, str]] = []
        self.closed = False
        self.reconnects = 0

    # -- setup helpers -------------------------------------------------

    def add_pool(
        self,
        token_a: Token,
        token_b: Token,
        fee: int,
        price,
        liquidity: int,
        address: Optional[str] = None,
        tick: int = 0,
    ) -> PoolState:
        """Deploy a pool where one token_a costs ``price`` token_b."""
        if address is None:
            address = compute_pool_address(
                self.settings.uniswap_v3_factory,
                token_a.pool_address,
                token_b.pool_address,
                fee,
                self.settings.pool_init_code_hash,
            )
        token0, token1 = (token_a, token_b) if token_a.sorts_before(token_b) else (token_b, token_a)
        state = PoolState(
            address=address,
            token0=token0.pool_address,
            token1=token1.pool_address,
            fee=fee,
            sqrt_price_x96=encode_sqrt_price(token_a, token_b, price),
            tick=tick,
            liquidity=liquidity,
        )
        self.code.add(address.lower())
        self.pools[address.lower()] = state
        return state

    def add_token(self, address: str, symbol: str, decimals: int, name: str = "") -> None:
        self.code.add(address.lower())
        self.metadata[address.lower()] = TokenMetadata(address, symbol, decimals, name or symbol)

    def set_balance(self, token: Token, owner: str, raw: int) -> None:
        if token.is_native:
            self.native_balances[owner.lower()] = raw
        else:
            self.erc20_balances[(token.address.lower(), owner.lower())] = raw

    def fail(self, method: str, error: Exception) -> None:
        self.failures[method] = error

    def _enter(self, method: str, key: str, deadline=None) -> None:
        if deadline is not None:
            deadline.check()
        self.calls.append((method, key))
        if method in self.failures:
            raise self.failures[method]

    # -- ChainDataProvider interface ----------------------------------

    async def get_chain_id(self, deadline=None) -> int:
        self._enter("get_chain_id", "", deadline)
        return self.settings.chain_id

    async def get_code(self, address: str, deadline=None) -> bytes:
        self._enter("get_code", address, deadline)
        return b"\x60\x80" if address.lower() in self.code else b""

    async def get_pool_state(self, address: str, deadline=None) -> PoolState:
        self._enter("get_pool_state", address, deadline)
        if address.lower() in self.reverting or address.lower() not in self.pools:
            raise ContractCallError("pool state: execution reverted")
        return self.pools[address.lower()]

    async def get_token_metadata(self, address: str, deadline=None) -> TokenMetadata:
        self._enter("get_token_metadata", address, deadline)
        if address.lower() not in self.metadata:
            raise ContractCallError("decimals: execution reverted")
        return self.metadata[address.lower()]

    async def get_native_balance(self, address: str, deadline=None) -> int:
        self._enter("get_native_balance", address, deadline)
        return self.native_balances.get(address.lower(), 0)

    async def get_erc20_balance(self, token: str, owner: str, deadline=None) -> int:
        self._enter("get_erc20_balance", token, deadline)
        if token.lower() in self.failing_balances:
            raise self.failing_balances[token.lower()]
        return self.erc20_balances.get((token.lower(), owner.lower()), 0)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def chain(settings):
    return FakeChain(settings)


@pytest.fixture
def core(settings, chain):
    return create_core(settings, provider=chain)


@pytest.fixture
def tokens(core):
    """Built-in tokens by symbol (upper-cased)."""
    return {token.symbol.upper(): token for token in core.registry.tokens}


@pytest.fixture
def eth_usdc_pool(chain, tokens):
    """WETH/USDC 0.05% at 3000 USDC per WETH on the curated pool address."""
    from basewallet import chains

    return chain.add_pool(
        tokens["WETH"], tokens["USDC"], 500, Decimal(3000), liquidity=10**18, address=chains.WETH_USDC_POOL
    )
