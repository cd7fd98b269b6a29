"""On-chain style tick bitmap: one bit per compressed tick, 256 bits per word."""

from __future__ import annotations

from typing import Dict, Iterable, Tuple

from clquote.simulator.tick_math import least_significant_bit, most_significant_bit


def position(compressed: int) -> Tuple[int, int]:
    """(word_pos, bit_pos) of a compressed tick; word_pos fits an int16."""
    return compressed >> 8, compressed % 256


def build_bitmap(tick_indices: Iterable[int], tick_spacing: int) -> Dict[int, int]:
    """Words keyed by position for the given initialized tick indices."""
    words: Dict[int, int] = {}
    for index in tick_indices:
        word_pos, bit_pos = position(index // tick_spacing)
        words[word_pos] = words.get(word_pos, 0) | (1 << bit_pos)
    return words


def next_initialized_tick_in_word(word: int, tick: int, lte: bool, tick_spacing: int) -> Tuple[int, bool]:
    """Scan ``word`` (the word containing the search start) like TickBitmap.nextInitializedTickWithinOneWord.

    For ``lte`` the word must be the one holding ``tick // tick_spacing``;
    otherwise the one holding ``tick // tick_spacing + 1``.
    """
    compressed = tick // tick_spacing

    if lte:
        _, bit_pos = position(compressed)
        mask = (1 << bit_pos) - 1 + (1 << bit_pos)
        masked = word & mask
        if masked:
            return (compressed - (bit_pos - most_significant_bit(masked))) * tick_spacing, True
        return (compressed - bit_pos) * tick_spacing, False

    _, bit_pos = position(compressed + 1)
    mask = ~((1 << bit_pos) - 1) & ((1 << 256) - 1)
    masked = word & mask
    if masked:
        return (compressed + 1 + (least_significant_bit(masked) - bit_pos)) * tick_spacing, True
    return (compressed + 1 + (255 - bit_pos)) * tick_spacing, False


def word_for_search(tick: int, lte: bool, tick_spacing: int) -> int:
    """Word position a search starting at ``tick`` reads."""
    compressed = tick // tick_spacing
    return position(compressed if lte else compressed + 1)[0]


__all__ = ["position", "build_bitmap", "next_initialized_tick_in_word", "word_for_search"]
