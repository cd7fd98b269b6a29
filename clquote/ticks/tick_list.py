"""Sorted, validated tick collections and word-bounded lookups.

A tick list is a plain sequence of ``Tick`` values sorted by index. All
functions here are pure; ``TickListDataProvider`` wraps them behind the
provider capability.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from clquote.common.errors import TickNotFoundError, ValidationError
from clquote.simulator.tick_math import MAX_TICK, MIN_TICK


@dataclass(frozen=True, slots=True)
class Tick:
    index: int
    liquidity_gross: int
    liquidity_net: int

    def __post_init__(self) -> None:
        if self.index < MIN_TICK or self.index > MAX_TICK:
            raise ValidationError("TICK", f"tick index {self.index} out of bounds", index=self.index)
        if self.liquidity_gross < 0:
            raise ValidationError("LIQUIDITY_GROSS", "liquidity_gross must be non-negative", index=self.index)


def validate_list(ticks: Sequence[Tick], tick_spacing: int) -> None:
    """Raise ValidationError unless ``ticks`` is a consistent tick set for ``tick_spacing``."""
    if tick_spacing <= 0:
        raise ValidationError("TICK_SPACING_NONZERO", "tick spacing must be positive", tick_spacing=tick_spacing)
    misaligned = [t.index for t in ticks if t.index % tick_spacing != 0]
    if misaligned:
        raise ValidationError(
            "TICK_SPACING",
            f"tick indices not divisible by spacing {tick_spacing}: {misaligned[:5]}",
            tick_spacing=tick_spacing,
            indices=misaligned,
        )
    net = sum(t.liquidity_net for t in ticks)
    if net != 0:
        raise ValidationError("ZERO_NET", f"liquidity_net sums to {net}, expected 0", net=net)
    for prev, cur in zip(ticks, ticks[1:]):
        if prev.index >= cur.index:
            raise ValidationError(
                "SORTED",
                f"ticks not strictly ascending at {prev.index} -> {cur.index}",
                previous=prev.index,
                current=cur.index,
            )


def is_below_smallest(ticks: Sequence[Tick], tick: int) -> bool:
    return not ticks or tick < ticks[0].index


def is_at_or_above_largest(ticks: Sequence[Tick], tick: int) -> bool:
    return not ticks or tick >= ticks[-1].index


def binary_search(ticks: Sequence[Tick], tick: int) -> int:
    """Position of the largest tick whose index is <= ``tick``."""
    if is_below_smallest(ticks, tick):
        raise TickNotFoundError("BELOW_SMALLEST", f"no tick at or below {tick}", tick=tick)
    lo, hi = 0, len(ticks) - 1
    while True:
        i = (lo + hi) // 2
        if ticks[i].index <= tick and (i == len(ticks) - 1 or ticks[i + 1].index > tick):
            return i
        if ticks[i].index < tick:
            lo = i + 1
        else:
            hi = i - 1


def get_tick(ticks: Sequence[Tick], index: int) -> Tick:
    found = ticks[binary_search(ticks, index)]
    if found.index != index:
        raise TickNotFoundError("NOT_CONTAINED", f"tick {index} is not initialized", index=index)
    return found


def next_initialized_tick(ticks: Sequence[Tick], tick: int, lte: bool) -> Tick:
    """Nearest tick at or below ``tick`` (lte) or strictly above it."""
    if lte:
        if is_below_smallest(ticks, tick):
            raise TickNotFoundError("BELOW_SMALLEST", f"no tick at or below {tick}", tick=tick)
        if is_at_or_above_largest(ticks, tick):
            return ticks[-1]
        return ticks[binary_search(ticks, tick)]
    if is_at_or_above_largest(ticks, tick):
        raise TickNotFoundError("AT_OR_ABOVE_LARGEST", f"no tick above {tick}", tick=tick)
    if is_below_smallest(ticks, tick):
        return ticks[0]
    return ticks[binary_search(ticks, tick) + 1]


def next_initialized_tick_within_one_word(
    ticks: Sequence[Tick], tick: int, lte: bool, tick_spacing: int
) -> Tuple[int, bool]:
    """Next initialized tick clamped to the current 256-tick bitmap word.

    Returns ``(tick, initialized)``; ``initialized`` is False when the result
    is only the word boundary and the caller has to keep scanning.
    """
    compressed = tick // tick_spacing

    if lte:
        word_pos = compressed >> 8
        minimum = (word_pos << 8) * tick_spacing
        if is_below_smallest(ticks, tick):
            return minimum, False
        index = next_initialized_tick(ticks, tick, True).index
        next_tick = max(minimum, index)
        return next_tick, next_tick == index

    word_pos = (compressed + 1) >> 8
    maximum = (((word_pos + 1) << 8) - 1) * tick_spacing
    if is_at_or_above_largest(ticks, tick):
        return maximum, False
    index = next_initialized_tick(ticks, tick, False).index
    next_tick = min(maximum, index)
    return next_tick, next_tick == index


__all__ = [
    "Tick",
    "validate_list",
    "is_below_smallest",
    "is_at_or_above_largest",
    "binary_search",
    "get_tick",
    "next_initialized_tick",
    "next_initialized_tick_within_one_word",
]
