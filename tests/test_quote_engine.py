"""Tests for swap quoting."""

from decimal import Decimal

import pytest

from basewallet import chains
from basewallet.errors import (
    DeadlineExceededError,
    InsufficientLiquidityError,
    InvalidAmountError,
    InvalidSlippageError,
    NoRouteError,
    UnsupportedTokenError,
    ZeroAmountError,
)
from basewallet.pools import FeeTier
from basewallet.routing import TradeType
from basewallet.routing.quote_engine import apply_slippage_down, apply_slippage_up, price_impact
from basewallet.utils.deadline import Deadline
from basewallet.utils.units import parse_units

LIQUIDITY = 1000 * 10**18


@pytest.fixture
def cbeth_weth(chain, tokens):
    """cbETH/WETH 0.3% at parity, the only pool for the pair."""
    return chain.add_pool(tokens["CBETH"], tokens["WETH"], FeeTier.MEDIUM, Decimal(1), liquidity=LIQUIDITY)


@pytest.fixture
def weth_usdc(chain, tokens):
    """Factory WETH/USDC 0.05% at 3000."""
    return chain.add_pool(tokens["WETH"], tokens["USDC"], FeeTier.LOW, Decimal(3000), liquidity=10**17)


@pytest.fixture
def pump_weth(chain, tokens):
    """Curated PUMP/WETH 1% at 1e-6 WETH per PUMP."""
    return chain.add_pool(
        tokens["PUMP"], tokens["WETH"], FeeTier.HIGH, Decimal("0.000001"),
        liquidity=10**24, address=chains.PUMP_WETH_POOL,
    )


class TestExactInput:
    """Tests for exact-input quotes."""

    @pytest.mark.asyncio
    async def test_direct_pool_output(self, core, cbeth_weth):
        quote = await core.quote_exact_input("cbETH", "WETH", "1")

        after_fee = 10**18 * 997_000 // 1_000_000
        expected = LIQUIDITY * after_fee // (LIQUIDITY + after_fee)
        raw_out = parse_units(quote.expected_output, 18)

        assert abs(raw_out - expected) <= 2
        assert quote.trade_type == TradeType.EXACT_INPUT
        assert quote.amount_in == Decimal(1)
        assert quote.maximum_input == Decimal(1)
        assert quote.fee == Decimal("0.3")
        assert quote.route_symbols == ["cbETH", "WETH"]

    @pytest.mark.asyncio
    async def test_price_impact_includes_fee(self, core, cbeth_weth):
        quote = await core.quote_exact_input("cbETH", "WETH", "1")
        # 0.3% fee plus ~0.1% movement
        assert Decimal("0.39") < quote.price_impact < Decimal("0.41")
        assert quote.price_impact == quote.price_impact.quantize(Decimal("0.0001"))

    @pytest.mark.asyncio
    async def test_minimum_output_respects_slippage(self, core, cbeth_weth):
        tight = await core.quote_exact_input("cbETH", "WETH", "1", slippage_tolerance="0.5")
        loose = await core.quote_exact_input("cbETH", "WETH", "1", slippage_tolerance="1")

        assert tight.expected_output == loose.expected_output
        assert loose.minimum_output < tight.minimum_output <= tight.expected_output
        raw_expected = parse_units(tight.expected_output, 18)
        assert parse_units(tight.minimum_output, 18) == raw_expected * 995 // 1000

    @pytest.mark.asyncio
    async def test_zero_slippage(self, core, cbeth_weth):
        quote = await core.quote_exact_input("cbETH", "WETH", "1", slippage_tolerance=0)
        assert quote.minimum_output == quote.expected_output

    @pytest.mark.asyncio
    async def test_default_slippage(self, core, cbeth_weth):
        quote = await core.quote_exact_input("cbETH", "WETH", "1")
        assert quote.slippage_tolerance == Decimal("0.5")

    @pytest.mark.asyncio
    async def test_native_input_sets_value(self, core, weth_usdc):
        quote = await core.quote_exact_input("ETH", "USDC", "0.5")

        assert quote.swap_params.value == 5 * 10**17
        assert quote.swap_params.amount_in == 5 * 10**17
        assert Decimal(1400) < quote.expected_output < Decimal(1500)

    @pytest.mark.asyncio
    async def test_erc20_input_has_no_value(self, core, weth_usdc):
        quote = await core.quote_exact_input("USDC", "WETH", "100")
        assert quote.swap_params.value == 0
        assert quote.swap_params.amount_in == 100 * 10**6

    @pytest.mark.asyncio
    async def test_two_hop_route(self, core, pump_weth, weth_usdc):
        quote = await core.quote_exact_input("PUMP", "USDC", "1000000")

        assert quote.route_symbols == ["PUMP", "WETH", "USDC"]
        assert not quote.route.is_direct
        assert quote.fee == Decimal("1.05")
        assert Decimal(2900) < quote.expected_output < Decimal(3000)
        assert quote.swap_params.pool_address.lower() == chains.PUMP_WETH_POOL.lower()
        assert len(quote.swap_params.path) == 66

    @pytest.mark.asyncio
    async def test_direct_route_preferred(self, core, chain, tokens, pump_weth, weth_usdc):
        chain.add_pool(tokens["PUMP"], tokens["USDC"], FeeTier.MEDIUM, Decimal("0.003"), liquidity=10**20)
        quote = await core.quote_exact_input("PUMP", "USDC", "1000")
        assert quote.route.is_direct

    @pytest.mark.asyncio
    async def test_token_by_address(self, core, cbeth_weth):
        quote = await core.quote_exact_input(chains.CBETH.lower(), "WETH", "1")
        assert quote.token_in.symbol == "cbETH"


class TestExactOutput:
    """Tests for exact-output quotes."""

    @pytest.mark.asyncio
    async def test_inverts_exact_input(self, core, cbeth_weth):
        sell = await core.quote_exact_input("cbETH", "WETH", "1")
        buy = await core.quote_exact_output("cbETH", "WETH", sell.expected_output)

        assert abs(parse_units(buy.amount_in, 18) - 10**18) <= 10
        assert buy.expected_output == sell.expected_output
        assert buy.minimum_output == buy.expected_output
        assert buy.trade_type == TradeType.EXACT_OUTPUT

    @pytest.mark.asyncio
    async def test_bound_adds_slippage(self, core, cbeth_weth):
        quote = await core.quote_exact_output("cbETH", "WETH", "1", slippage_tolerance="1")

        raw_required = parse_units(quote.amount_in, 18)
        assert quote.swap_params.amount_in == -(-raw_required * 101 // 100)
        assert quote.swap_params.amount_out == 10**18
        assert parse_units(quote.maximum_input, 18) == quote.swap_params.amount_in

    @pytest.mark.asyncio
    async def test_bound_capped_at_budget(self, core, cbeth_weth):
        quote = await core.quote_exact_output("cbETH", "WETH", "1", max_amount_in="1.0045")

        assert Decimal("1.004") < quote.amount_in < Decimal("1.0045")
        assert quote.maximum_input == Decimal("1.0045")

    @pytest.mark.asyncio
    async def test_budget_shortfall(self, core, cbeth_weth):
        with pytest.raises(InsufficientLiquidityError) as exc_info:
            await core.quote_exact_output("cbETH", "WETH", "1", max_amount_in="0.5")

        error = exc_info.value
        assert error.max_input == Decimal("0.5")
        assert Decimal("1.004") < error.required_input < Decimal("1.005")
        assert Decimal("0.49") < error.achievable_output < Decimal("0.5")
        assert error.shortfall_ratio < Decimal("0.5")
        assert "Price too high" in error.user_message
        assert "approximately" in error.user_message

    @pytest.mark.asyncio
    async def test_more_than_pool_holds(self, core, cbeth_weth):
        with pytest.raises(InsufficientLiquidityError) as exc_info:
            await core.quote_exact_output("cbETH", "WETH", "5000")
        assert exc_info.value.required_input is None

    @pytest.mark.asyncio
    async def test_two_hop_path_reversed(self, core, pump_weth, weth_usdc):
        quote = await core.quote_exact_output("PUMP", "USDC", "1000")

        assert quote.route_symbols == ["PUMP", "WETH", "USDC"]
        assert Decimal(330_000) < quote.amount_in < Decimal(350_000)
        assert quote.swap_params.path[:20] == bytes.fromhex(chains.USDC[2:])
        assert quote.swap_params.path[-20:] == bytes.fromhex(chains.PUMP[2:])

    @pytest.mark.asyncio
    async def test_zero_budget_rejected(self, core, chain, cbeth_weth):
        with pytest.raises(ZeroAmountError):
            await core.quote_exact_output("cbETH", "WETH", "1", max_amount_in="0")


class TestValidation:
    """Tests for input validation and routing failures."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-1", 0])
    async def test_non_positive_amount_before_network(self, core, chain, amount):
        with pytest.raises(ZeroAmountError):
            await core.quote_exact_input("ETH", "USDC", amount)
        assert chain.calls == []

    @pytest.mark.asyncio
    async def test_garbage_amount(self, core):
        with pytest.raises(InvalidAmountError):
            await core.quote_exact_input("ETH", "USDC", "lots")

    @pytest.mark.asyncio
    async def test_too_many_decimals(self, core):
        with pytest.raises(InvalidAmountError):
            await core.quote_exact_input("USDC", "ETH", "1.0000001")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("slippage", ["-1", "100", "250"])
    async def test_slippage_out_of_range(self, core, slippage):
        with pytest.raises(InvalidSlippageError):
            await core.quote_exact_input("ETH", "USDC", "1", slippage_tolerance=slippage)

    @pytest.mark.asyncio
    async def test_unknown_token(self, core):
        with pytest.raises(UnsupportedTokenError):
            await core.quote_exact_input("ETH", "NOPE", "1")

    @pytest.mark.asyncio
    async def test_same_token(self, core):
        with pytest.raises(NoRouteError):
            await core.quote_exact_input("ETH", "WETH", "1")

    @pytest.mark.asyncio
    async def test_no_route(self, core, weth_usdc):
        with pytest.raises(NoRouteError) as exc_info:
            await core.quote_exact_input("ENB", "USDbC", "1")
        assert exc_info.value.token_in == "ENB"

    @pytest.mark.asyncio
    async def test_cancelled_deadline(self, core, cbeth_weth):
        deadline = Deadline(timeout=10)
        deadline.cancel()
        with pytest.raises(DeadlineExceededError):
            await core.quote_exact_input("cbETH", "WETH", "1", deadline=deadline)


class TestHelpers:
    """Tests for slippage and impact helpers."""

    def test_slippage_rounding(self):
        assert apply_slippage_down(1001, Decimal("0.5")) == 995
        assert apply_slippage_up(1001, Decimal("0.5")) == 1007

    def test_large_amounts_exact(self):
        raw = 123456789012345678901234567890
        assert apply_slippage_down(raw, Decimal(0)) == raw
        assert apply_slippage_up(raw, Decimal(0)) == raw

    def test_impact_never_negative(self):
        assert price_impact(1000, 1001) == Decimal(0)
        assert price_impact(0, 5) == Decimal(0)
        assert price_impact(1000, 990) == Decimal("1.0000")
