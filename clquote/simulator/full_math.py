"""Rounding-aware integer helpers mirroring the on-chain uint256 arithmetic."""

from __future__ import annotations

Q96 = 1 << 96
Q128 = 1 << 128
Q192 = 1 << 192
MAX_UINT160 = (1 << 160) - 1
MAX_UINT256 = (1 << 256) - 1


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator), plus one when the division leaves a remainder."""
    quotient, remainder = divmod(a * b, denominator)
    if remainder:
        quotient += 1
    return quotient


def multiply_in_256(x: int, y: int) -> int:
    """x * y truncated to the low 256 bits (uint256 overflow)."""
    return (x * y) & MAX_UINT256


def add_in_256(x: int, y: int) -> int:
    """x + y truncated to the low 256 bits (uint256 overflow)."""
    return (x + y) & MAX_UINT256


def sub_in_256(x: int, y: int) -> int:
    """x - y wrapped modulo 2**256 (uint256 underflow)."""
    difference = x - y
    if difference < 0:
        return difference + (1 << 256)
    return difference


__all__ = [
    "Q96",
    "Q128",
    "Q192",
    "MAX_UINT160",
    "MAX_UINT256",
    "mul_div_rounding_up",
    "multiply_in_256",
    "add_in_256",
    "sub_in_256",
]
