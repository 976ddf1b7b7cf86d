"""
Uniswap V3 swap math within the active tick range.

Integer (uint256-style) arithmetic following the UniswapV3 core libraries
(FullMath, SqrtPriceMath, SwapMath) with their rounding directions, so a
quote matches what the pool would compute for a swap that does not cross an
initialized tick.

Key concepts:
- sqrtPriceX96: square root of token1/token0 price in Q96 fixed point
- liquidity L: active liquidity at the current tick
- fee: hundredths of a bip (3000 = 0.30%), taken from the input amount
"""

Q96 = 2**96
Q192 = 2**192
FEE_DENOMINATOR = 1_000_000

MIN_TICK = -887272
MAX_TICK = 887272
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342


class SwapMathError(ArithmeticError):
    """Swap cannot be computed inside the active range."""


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator)."""
    if denominator == 0:
        raise SwapMathError("division by zero")
    return (a * b) // denominator


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator)."""
    if denominator == 0:
        raise SwapMathError("division by zero")
    return -((-a * b) // denominator)


def div_rounding_up(a: int, b: int) -> int:
    return -(-a // b)


def clamp_tick(tick: int) -> int:
    return max(MIN_TICK, min(MAX_TICK, tick))


def get_amount0_delta(
    *,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
    round_up: bool,
) -> int:
    """
    Token0 amount between two sqrt prices.

    Formula: amount0 = L * Q96 * (√Pb - √Pa) / √Pb / √Pa

    Args:
        sqrt_ratio_a_x96: One sqrt price bound in Q96 format
        sqrt_ratio_b_x96: Other sqrt price bound in Q96 format
        liquidity: Active liquidity L
        round_up: Round up (amount owed to the pool) or down (amount paid out)

    Returns:
        Amount of token0
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    if sqrt_ratio_a_x96 <= 0:
        raise SwapMathError("sqrt price must be positive")

    numerator1 = liquidity << 96
    numerator2 = sqrt_ratio_b_x96 - sqrt_ratio_a_x96

    if round_up:
        return div_rounding_up(
            mul_div_rounding_up(numerator1, numerator2, sqrt_ratio_b_x96),
            sqrt_ratio_a_x96,
        )
    return mul_div(numerator1, numerator2, sqrt_ratio_b_x96) // sqrt_ratio_a_x96


def get_amount1_delta(
    *,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int,
    round_up: bool,
) -> int:
    """
    Token1 amount between two sqrt prices.

    Formula: amount1 = L * (√Pb - √Pa) / Q96
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    if round_up:
        return mul_div_rounding_up(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)
    return mul_div(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)


def get_next_sqrt_price_from_amount0_rounding_up(
    sqrt_price_x96: int, liquidity: int, amount: int, add: bool
) -> int:
    """Next sqrt price after adding (or removing) ``amount`` of token0.

    Rounds up so the price moves no further than the amount allows.
    """
    if amount == 0:
        return sqrt_price_x96
    numerator1 = liquidity << 96

    if add:
        denominator = numerator1 + amount * sqrt_price_x96
        return mul_div_rounding_up(numerator1, sqrt_price_x96, denominator)

    product = amount * sqrt_price_x96
    if numerator1 <= product:
        raise SwapMathError("output exceeds token0 reserves in range")
    return mul_div_rounding_up(numerator1, sqrt_price_x96, numerator1 - product)


def get_next_sqrt_price_from_amount1_rounding_down(
    sqrt_price_x96: int, liquidity: int, amount: int, add: bool
) -> int:
    """Next sqrt price after adding (or removing) ``amount`` of token1."""
    if add:
        return sqrt_price_x96 + (amount << 96) // liquidity

    quotient = div_rounding_up(amount << 96, liquidity)
    if sqrt_price_x96 <= quotient:
        raise SwapMathError("output exceeds token1 reserves in range")
    return sqrt_price_x96 - quotient


def get_next_sqrt_price_from_input(
    sqrt_price_x96: int, liquidity: int, amount_in: int, zero_for_one: bool
) -> int:
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise SwapMathError("pool has no active liquidity")
    if zero_for_one:
        return get_next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_in, True)
    return get_next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_in, True)


def get_next_sqrt_price_from_output(
    sqrt_price_x96: int, liquidity: int, amount_out: int, zero_for_one: bool
) -> int:
    if sqrt_price_x96 <= 0 or liquidity <= 0:
        raise SwapMathError("pool has no active liquidity")
    if zero_for_one:
        return get_next_sqrt_price_from_amount1_rounding_down(sqrt_price_x96, liquidity, amount_out, False)
    return get_next_sqrt_price_from_amount0_rounding_up(sqrt_price_x96, liquidity, amount_out, False)


def _check_price_bounds(sqrt_price_x96: int) -> None:
    if not MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO:
        raise SwapMathError("swap moves the price outside the valid range")


def compute_exact_input(
    sqrt_price_x96: int, liquidity: int, amount_in: int, fee: int, zero_for_one: bool
) -> tuple[int, int]:
    """
    Output of an exact-input swap inside the active range.

    The fee is deducted from the input before the price moves.

    Args:
        sqrt_price_x96: Current pool sqrt price
        liquidity: Active liquidity
        amount_in: Input amount including fee
        fee: Pool fee in hundredths of a bip
        zero_for_one: True when selling token0 for token1

    Returns:
        (amount_out, next sqrt price)
    """
    amount_less_fee = mul_div(amount_in, FEE_DENOMINATOR - fee, FEE_DENOMINATOR)
    sqrt_next = get_next_sqrt_price_from_input(sqrt_price_x96, liquidity, amount_less_fee, zero_for_one)
    _check_price_bounds(sqrt_next)

    if zero_for_one:
        amount_out = get_amount1_delta(
            sqrt_ratio_a_x96=sqrt_next, sqrt_ratio_b_x96=sqrt_price_x96, liquidity=liquidity, round_up=False
        )
    else:
        amount_out = get_amount0_delta(
            sqrt_ratio_a_x96=sqrt_price_x96, sqrt_ratio_b_x96=sqrt_next, liquidity=liquidity, round_up=False
        )
    return amount_out, sqrt_next


def compute_exact_output(
    sqrt_price_x96: int, liquidity: int, amount_out: int, fee: int, zero_for_one: bool
) -> tuple[int, int]:
    """
    Input (fee included) needed for an exact-output swap inside the active range.

    Returns:
        (amount_in, next sqrt price)

    Raises:
        SwapMathError: The active range cannot supply ``amount_out``
    """
    sqrt_next = get_next_sqrt_price_from_output(sqrt_price_x96, liquidity, amount_out, zero_for_one)
    _check_price_bounds(sqrt_next)

    if zero_for_one:
        amount_in = get_amount0_delta(
            sqrt_ratio_a_x96=sqrt_next, sqrt_ratio_b_x96=sqrt_price_x96, liquidity=liquidity, round_up=True
        )
    else:
        amount_in = get_amount1_delta(
            sqrt_ratio_a_x96=sqrt_price_x96, sqrt_ratio_b_x96=sqrt_next, liquidity=liquidity, round_up=True
        )

    fee_amount = mul_div_rounding_up(amount_in, fee, FEE_DENOMINATOR - fee)
    return amount_in + fee_amount, sqrt_next


def mid_price_quote(sqrt_price_x96: int, amount: int, zero_for_one: bool) -> int:
    """Output at the current mid price, no fee and no price movement."""
    ratio_x192 = sqrt_price_x96 * sqrt_price_x96
    if zero_for_one:
        return (amount * ratio_x192) >> 192
    if ratio_x192 == 0:
        raise SwapMathError("pool price is zero")
    return (amount << 192) // ratio_x192
