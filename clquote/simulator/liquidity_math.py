"""Active-liquidity updates."""

from __future__ import annotations

from clquote.common.errors import ValidationError


def add_delta(x: int, y: int) -> int:
    """Apply a signed liquidity delta ``y`` to unsigned liquidity ``x``."""
    result = x + y
    if result < 0:
        raise ValidationError("LIQUIDITY_SUB", "liquidity delta underflows active liquidity", liquidity=x, delta=y)
    return result


__all__ = ["add_delta"]
