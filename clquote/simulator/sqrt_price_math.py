"""Token amount deltas between prices and next-price computation.

Rounding always favors the pool: amounts a trader pays are rounded up,
amounts a trader receives are rounded down.
"""

from __future__ import annotations

import math

from clquote.common.errors import InsufficientLiquidityError, ValidationError
from clquote.simulator.full_math import (
    MAX_UINT160,
    Q96,
    add_in_256,
    mul_div_rounding_up,
    multiply_in_256,
)


def encode_sqrt_ratio_x96(amount1: int, amount0: int) -> int:
    """sqrt(amount1 / amount0) as a Q64.96, rounded down."""
    if amount0 <= 0 or amount1 < 0:
        raise ValidationError("AMOUNTS", "encode_sqrt_ratio_x96 needs amount0 > 0 and amount1 >= 0")
    ratio_x192 = (amount1 << 192) // amount0
    return math.isqrt(ratio_x192)


def get_amount0_delta(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int, round_up: bool) -> int:
    """Amount of token0 between two prices: L * (sqrtB - sqrtA) / (sqrtA * sqrtB)."""
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    numerator1 = liquidity << 96
    numerator2 = sqrt_ratio_b_x96 - sqrt_ratio_a_x96

    if round_up:
        return mul_div_rounding_up(
            mul_div_rounding_up(numerator1, numerator2, sqrt_ratio_b_x96),
            1,
            sqrt_ratio_a_x96,
        )
    return (numerator1 * numerator2 // sqrt_ratio_b_x96) // sqrt_ratio_a_x96


def get_amount1_delta(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int, round_up: bool) -> int:
    """Amount of token1 between two prices: L * (sqrtB - sqrtA)."""
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    if round_up:
        return mul_div_rounding_up(liquidity, sqrt_ratio_b_x96 - sqrt_ratio_a_x96, Q96)
    return liquidity * (sqrt_ratio_b_x96 - sqrt_ratio_a_x96) // Q96


def get_next_sqrt_price_from_amount0_rounding_up(
    sqrt_p_x96: int, liquidity: int, amount: int, add: bool
) -> int:
    """Next price after adding/removing ``amount`` of token0, rounded up.

    Adding uses L*sqrtP / (L + amount*sqrtP) while the uint256 product fits,
    else the overflow-safe L / (L/sqrtP + amount).
    """
    if amount == 0:
        return sqrt_p_x96
    numerator1 = liquidity << 96

    if add:
        product = multiply_in_256(amount, sqrt_p_x96)
        if product // amount == sqrt_p_x96:
            denominator = add_in_256(numerator1, product)
            if denominator >= numerator1:
                return mul_div_rounding_up(numerator1, sqrt_p_x96, denominator)
        return mul_div_rounding_up(numerator1, 1, numerator1 // sqrt_p_x96 + amount)

    product = multiply_in_256(amount, sqrt_p_x96)
    if product // amount != sqrt_p_x96 or numerator1 <= product:
        raise InsufficientLiquidityError(
            "AMOUNT0_EXCEEDS_RESERVES",
            "token0 amount to remove exceeds what the liquidity can provide",
            sqrt_p_x96=sqrt_p_x96,
            liquidity=liquidity,
            amount=amount,
        )
    denominator = numerator1 - product
    return mul_div_rounding_up(numerator1, sqrt_p_x96, denominator)


def get_next_sqrt_price_from_amount1_rounding_down(
    sqrt_p_x96: int, liquidity: int, amount: int, add: bool
) -> int:
    """Next price after adding/removing ``amount`` of token1, rounded down."""
    if add:
        if amount <= MAX_UINT160:
            quotient = (amount << 96) // liquidity
        else:
            quotient = amount * Q96 // liquidity
        return sqrt_p_x96 + quotient

    quotient = mul_div_rounding_up(amount, Q96, liquidity)
    if sqrt_p_x96 <= quotient:
        raise InsufficientLiquidityError(
            "AMOUNT1_EXCEEDS_RESERVES",
            "token1 amount to remove exceeds what the liquidity can provide",
            sqrt_p_x96=sqrt_p_x96,
            liquidity=liquidity,
            amount=amount,
        )
    return sqrt_p_x96 - quotient


def _check_price_and_liquidity(sqrt_p_x96: int, liquidity: int) -> None:
    if sqrt_p_x96 <= 0:
        raise ValidationError("SQRT_PRICE", "sqrt price must be positive", sqrt_p_x96=sqrt_p_x96)
    if liquidity <= 0:
        raise ValidationError("LIQUIDITY", "liquidity must be positive", liquidity=liquidity)


def get_next_sqrt_price_from_input(sqrt_p_x96: int, liquidity: int, amount_in: int, zero_for_one: bool) -> int:
    _check_price_and_liquidity(sqrt_p_x96, liquidity)
    if zero_for_one:
        return get_next_sqrt_price_from_amount0_rounding_up(sqrt_p_x96, liquidity, amount_in, True)
    return get_next_sqrt_price_from_amount1_rounding_down(sqrt_p_x96, liquidity, amount_in, True)


def get_next_sqrt_price_from_output(sqrt_p_x96: int, liquidity: int, amount_out: int, zero_for_one: bool) -> int:
    _check_price_and_liquidity(sqrt_p_x96, liquidity)
    if zero_for_one:
        return get_next_sqrt_price_from_amount1_rounding_down(sqrt_p_x96, liquidity, amount_out, False)
    return get_next_sqrt_price_from_amount0_rounding_up(sqrt_p_x96, liquidity, amount_out, False)


__all__ = [
    "encode_sqrt_ratio_x96",
    "get_amount0_delta",
    "get_amount1_delta",
    "get_next_sqrt_price_from_amount0_rounding_up",
    "get_next_sqrt_price_from_amount1_rounding_down",
    "get_next_sqrt_price_from_input",
    "get_next_sqrt_price_from_output",
]
