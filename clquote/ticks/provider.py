"""Tick data capability consumed by the swap engine.

Anything exposing the two coroutines below can back a pool: the in-memory
list, the RPC-backed provider, or a caller's own implementation.
"""

from __future__ import annotations

import abc
from typing import Iterable, Tuple

from clquote.common.errors import ValidationError
from clquote.ticks import tick_list
from clquote.ticks.tick_list import Tick


class TickDataProvider(abc.ABC):
    @abc.abstractmethod
    async def get_tick(self, index: int) -> Tick:
        """Return the tick at ``index``; raise TickNotFoundError if absent."""
        raise NotImplementedError

    @abc.abstractmethod
    async def next_initialized_tick_within_one_word(self, tick: int, lte: bool, tick_spacing: int) -> Tuple[int, bool]:
        """Return ``(next_tick, initialized)`` bounded by the current bitmap word."""
        raise NotImplementedError


class NoTickDataProvider(TickDataProvider):
    """Default for pools built without tick data; any lookup fails."""

    ERROR_MESSAGE = "No tick data provider was given"

    async def get_tick(self, index: int) -> Tick:
        raise ValidationError("NO_TICK_DATA", self.ERROR_MESSAGE, index=index)

    async def next_initialized_tick_within_one_word(self, tick: int, lte: bool, tick_spacing: int) -> Tuple[int, bool]:
        raise ValidationError("NO_TICK_DATA", self.ERROR_MESSAGE, tick=tick)


class TickListDataProvider(TickDataProvider):
    """Validated in-memory tick array."""

    def __init__(self, ticks: Iterable[Tick | dict], tick_spacing: int) -> None:
        mapped = tuple(t if isinstance(t, Tick) else Tick(**t) for t in ticks)
        tick_list.validate_list(mapped, tick_spacing)
        self.ticks = mapped
        self.tick_spacing = tick_spacing

    async def get_tick(self, index: int) -> Tick:
        return tick_list.get_tick(self.ticks, index)

    async def next_initialized_tick_within_one_word(self, tick: int, lte: bool, tick_spacing: int) -> Tuple[int, bool]:
        return tick_list.next_initialized_tick_within_one_word(self.ticks, tick, lte, tick_spacing)

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"TickListDataProvider(ticks={len(self.ticks)}, spacing={self.tick_spacing})"


__all__ = ["TickDataProvider", "NoTickDataProvider", "TickListDataProvider"]
