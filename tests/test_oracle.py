"""Tests for USD price derivation."""

from decimal import Decimal

import pytest

from basewallet import chains
from basewallet.errors import DeadlineExceededError, ProviderError
from basewallet.pools import FeeTier
from basewallet.tokens import Token
from basewallet.utils.deadline import Deadline

CENT = Decimal("0.01")


def close_to(value: Decimal, expected, tolerance="0.000000001") -> bool:
    return abs(value - Decimal(expected)) < Decimal(tolerance)


class TestNativePrice:
    """Tests for the ETH/USD price chain."""

    @pytest.mark.asyncio
    async def test_weth_usdc_pool(self, core, eth_usdc_pool):
        price = await core.oracle.native_price()
        assert price.quantize(CENT) == Decimal("3000.00")

    @pytest.mark.asyncio
    async def test_eth_and_weth_share_price(self, core, tokens, eth_usdc_pool):
        eth = await core.oracle.price_of(tokens["ETH"])
        weth = await core.oracle.price_of(tokens["WETH"])
        assert eth == weth

    @pytest.mark.asyncio
    async def test_cbeth_cross_rate_fallback(self, core, chain, tokens):
        chain.add_pool(tokens["CBETH"], tokens["USDC"], FeeTier.MEDIUM, Decimal(3300), liquidity=10**17)
        chain.add_pool(tokens["CBETH"], tokens["WETH"], FeeTier.LOW, Decimal("1.1"), liquidity=10**20)

        price = await core.oracle.native_price()

        assert price.quantize(CENT) == Decimal("3000.00")

    @pytest.mark.asyncio
    async def test_constant_when_no_source(self, core):
        assert await core.oracle.native_price() == Decimal("2000")

    @pytest.mark.asyncio
    async def test_constant_when_reads_fail(self, core, chain, eth_usdc_pool):
        chain.fail("get_code", ProviderError("eth_getCode", 3))
        assert await core.oracle.native_price() == Decimal("2000")

    @pytest.mark.asyncio
    async def test_empty_primary_pool_skipped(self, core, chain, tokens):
        chain.add_pool(
            tokens["WETH"], tokens["USDC"], FeeTier.LOW, Decimal(3000), liquidity=0, address=chains.WETH_USDC_POOL
        )
        assert await core.oracle.native_price() == Decimal("2000")

    @pytest.mark.asyncio
    async def test_deadline_propagates(self, core, eth_usdc_pool):
        deadline = Deadline(timeout=10)
        deadline.cancel()
        with pytest.raises(DeadlineExceededError):
            await core.oracle.native_price(deadline=deadline)


class TestTokenPrices:
    """Tests for per-token price policies."""

    @pytest.mark.asyncio
    async def test_stablecoin_static(self, core, chain, tokens):
        assert await core.oracle.price_of(tokens["USDC"]) == Decimal(1)
        assert await core.oracle.price_of(tokens["USDBC"]) == Decimal(1)
        assert chain.calls == []

    @pytest.mark.asyncio
    async def test_pinned_weth_pool_times_eth_price(self, core, chain, tokens, eth_usdc_pool):
        chain.add_pool(
            tokens["PUMP"], tokens["WETH"], FeeTier.HIGH, Decimal("0.000001"),
            liquidity=10**24, address=chains.PUMP_WETH_POOL,
        )
        price = await core.oracle.price_of(tokens["PUMP"])
        assert close_to(price, "0.003")

    @pytest.mark.asyncio
    async def test_derived_pool(self, core, chain, tokens, eth_usdc_pool):
        chain.add_pool(tokens["CBETH"], tokens["WETH"], FeeTier.LOW, Decimal("1.1"), liquidity=10**20)
        price = await core.oracle.price_of(tokens["CBETH"])
        assert price.quantize(CENT) == Decimal("3300.00")

    @pytest.mark.asyncio
    async def test_missing_pool_uses_static_price(self, core, tokens, eth_usdc_pool):
        assert await core.oracle.price_of(tokens["ENB"]) == Decimal(0)

    @pytest.mark.asyncio
    async def test_failing_pool_uses_static_price(self, core, chain, tokens):
        chain.fail("get_pool_state", ProviderError("pool state", 3))
        chain.add_pool(
            tokens["PUMP"], tokens["WETH"], FeeTier.HIGH, Decimal("0.000001"),
            liquidity=10**24, address=chains.PUMP_WETH_POOL,
        )
        assert await core.oracle.price_of(tokens["PUMP"]) == Decimal(0)

    @pytest.mark.asyncio
    async def test_unconfigured_token(self, core, chain):
        token = core.registry.register(Token("NEW", "0x1111111111111111111111111111111111111111", 18))
        assert await core.oracle.price_of(token) == Decimal(0)
        assert chain.calls == []

    @pytest.mark.asyncio
    async def test_core_price_by_symbol(self, core, eth_usdc_pool):
        price = await core.price_of("eth")
        assert price.quantize(CENT) == Decimal("3000.00")
