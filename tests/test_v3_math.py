"""Tests for the in-range Uniswap V3 swap math."""

import pytest

from basewallet.pools import v3_math
from basewallet.pools.v3_math import Q96, SwapMathError


class TestFullMath:
    """Tests for mul_div helpers."""

    def test_mul_div_floors(self):
        assert v3_math.mul_div(7, 3, 2) == 10

    def test_mul_div_rounding_up(self):
        assert v3_math.mul_div_rounding_up(7, 3, 2) == 11
        assert v3_math.mul_div_rounding_up(6, 3, 2) == 9

    def test_division_by_zero(self):
        with pytest.raises(SwapMathError):
            v3_math.mul_div(1, 1, 0)


class TestAmountDeltas:
    """Tests for amount0/amount1 deltas."""

    def test_amount1_delta_is_order_independent(self):
        a, b = Q96, Q96 * 2
        kwargs = dict(liquidity=10**18, round_up=False)
        assert v3_math.get_amount1_delta(sqrt_ratio_a_x96=a, sqrt_ratio_b_x96=b, **kwargs) == (
            v3_math.get_amount1_delta(sqrt_ratio_a_x96=b, sqrt_ratio_b_x96=a, **kwargs)
        )

    def test_amount1_delta_value(self):
        # L * (2 - 1) when prices are 1 and 2 in Q96
        delta = v3_math.get_amount1_delta(
            sqrt_ratio_a_x96=Q96, sqrt_ratio_b_x96=2 * Q96, liquidity=10**18, round_up=False
        )
        assert delta == 10**18

    def test_amount0_delta_value(self):
        # L * (1/1 - 1/2)
        delta = v3_math.get_amount0_delta(
            sqrt_ratio_a_x96=Q96, sqrt_ratio_b_x96=2 * Q96, liquidity=10**18, round_up=False
        )
        assert delta == 5 * 10**17

    def test_round_up_never_below_round_down(self):
        args = dict(sqrt_ratio_a_x96=Q96 + 12345, sqrt_ratio_b_x96=Q96 * 3 + 7, liquidity=987654321)
        up = v3_math.get_amount0_delta(round_up=True, **args)
        down = v3_math.get_amount0_delta(round_up=False, **args)
        assert up - down in (0, 1)


class TestSwapComputation:
    """Tests for exact-input / exact-output swaps inside the active range."""

    LIQUIDITY = 1000 * 10**18

    def test_exact_input_matches_constant_product(self):
        """At price 1, in-range output equals L*a/(L+a) for the post-fee input."""
        amount_in = 10**18
        amount_out, _ = v3_math.compute_exact_input(Q96, self.LIQUIDITY, amount_in, 3000, True)

        after_fee = amount_in * 997_000 // 1_000_000
        expected = self.LIQUIDITY * after_fee // (self.LIQUIDITY + after_fee)
        assert abs(amount_out - expected) <= 1

    def test_exact_input_moves_price_in_swap_direction(self):
        _, sqrt_down = v3_math.compute_exact_input(Q96, self.LIQUIDITY, 10**18, 500, True)
        _, sqrt_up = v3_math.compute_exact_input(Q96, self.LIQUIDITY, 10**18, 500, False)
        assert sqrt_down < Q96 < sqrt_up

    def test_exact_output_inverts_exact_input(self):
        amount_in = 5 * 10**18
        amount_out, _ = v3_math.compute_exact_input(Q96, self.LIQUIDITY, amount_in, 3000, False)
        required, _ = v3_math.compute_exact_output(Q96, self.LIQUIDITY, amount_out, 3000, False)

        # Rounding favours the pool by at most a few wei
        assert amount_in - 3 <= required <= amount_in

    def test_exact_output_beyond_reserves(self):
        with pytest.raises(SwapMathError):
            v3_math.compute_exact_output(Q96, 10**6, 10**6, 3000, True)

    def test_zero_liquidity_rejected(self):
        with pytest.raises(SwapMathError):
            v3_math.compute_exact_input(Q96, 0, 10**18, 3000, True)

    def test_mid_price_quote(self):
        assert v3_math.mid_price_quote(2 * Q96, 10, True) == 40
        assert v3_math.mid_price_quote(2 * Q96, 40, False) == 10

    def test_clamp_tick(self):
        assert v3_math.clamp_tick(10**7) == v3_math.MAX_TICK
        assert v3_math.clamp_tick(-(10**7)) == v3_math.MIN_TICK
        assert v3_math.clamp_tick(42) == 42
