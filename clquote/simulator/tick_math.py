"""Tick index <-> Q64.96 sqrt price conversion (integer exact).

Port of the on-chain TickMath library. ``get_sqrt_ratio_at_tick`` builds
1.0001^(tick/2) in Q128.128 by multiplying one precomputed constant per set
bit of ``|tick|``; ``get_tick_at_sqrt_ratio`` inverts it with a fixed-point
log2 and picks between two candidate ticks.
"""

from __future__ import annotations

from fractions import Fraction

from clquote.common.errors import ValidationError
from clquote.common.models import Token
from clquote.simulator.full_math import MAX_UINT256, Q192
from clquote.simulator.sqrt_price_math import encode_sqrt_ratio_x96

MIN_TICK = -887272
MAX_TICK = 887272
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

# sqrt(1.0001)^-(2^i) in Q128.128 for bits 1..19; bit 0 seeds the ratio.
_BIT0_RATIO = 0xFFFCB933BD6FAD37AA2D162D1A594001
_RATIOS = [
    0xFFF97272373D413259A46990580E213A,
    0xFFF2E50F5F656932EF12357CF3C7FDCC,
    0xFFE5CACA7E10E4E61C3624EAA0941CD0,
    0xFFCB9843D60F6159C9DB58835C926644,
    0xFF973B41FA98C081472E6896DFB254C0,
    0xFF2EA16466C96A3843EC78B326B52861,
    0xFE5DEE046A99A2A811C461F1969C3053,
    0xFCBE86C7900A88AEDCFFC83B479AA3A4,
    0xF987A7253AC413176F2B074CF7815E54,
    0xF3392B0822B70005940C7A398E4B70F3,
    0xE7159475A2C29B7443B29C7FA6E889D9,
    0xD097F3BDFD2022B8845AD8F792AA5825,
    0xA9F746462D870FDF8A65DC1F90E061E5,
    0x70D869A156D2A1B890BB3DF62BAF32F7,
    0x31BE135F97D08FD981231505542FCFA6,
    0x9AA508B5B7A84E1C677DE54F3E99BC9,
    0x5D6AF8DEDB81196699C329225EE604,
    0x2216E584F5FA1EA926041BEDFE98,
    0x48A170391F7DC42444E8FA2,
]

_LOG_SQRT10001_MULTIPLIER = 255738958999603826347141
_TICK_LOW_OFFSET = 3402992956809132418596140100660247210
_TICK_HIGH_OFFSET = 291339464771989622907027621153398088495

_POWERS_OF_2 = [(p, 1 << p) for p in (128, 64, 32, 16, 8, 4, 2, 1)]


def most_significant_bit(x: int) -> int:
    """Index (0-255) of the highest set bit of a uint256."""
    if x <= 0:
        raise ValidationError("ZERO", "most_significant_bit requires x > 0", x=x)
    if x > MAX_UINT256:
        raise ValidationError("MAX", "most_significant_bit requires x <= 2**256-1", x=x)
    msb = 0
    for power, minimum in _POWERS_OF_2:
        if x >= minimum:
            x >>= power
            msb += power
    return msb


def least_significant_bit(x: int) -> int:
    """Index (0-255) of the lowest set bit of a uint256."""
    if x <= 0:
        raise ValidationError("ZERO", "least_significant_bit requires x > 0", x=x)
    if x > MAX_UINT256:
        raise ValidationError("MAX", "least_significant_bit requires x <= 2**256-1", x=x)
    return most_significant_bit(x & -x)


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """Return sqrt(1.0001^tick) as a Q64.96, rounded up."""
    if not isinstance(tick, int) or isinstance(tick, bool):
        raise ValidationError("TICK", f"tick must be an integer, got {tick!r}", tick=tick)
    if tick < MIN_TICK or tick > MAX_TICK:
        raise ValidationError("TICK", f"tick {tick} out of bounds [{MIN_TICK}, {MAX_TICK}]", tick=tick)
    abs_tick = -tick if tick < 0 else tick

    ratio = _BIT0_RATIO if abs_tick & 0x1 else 1 << 128
    for i, magic in enumerate(_RATIOS, start=1):
        if (abs_tick >> i) & 1:
            ratio = (ratio * magic) >> 128

    if tick > 0:
        ratio = MAX_UINT256 // ratio

    # Q128.128 -> Q64.96, rounding up so the result never understates the price
    return (ratio >> 32) + (1 if ratio % (1 << 32) else 0)


def get_tick_at_sqrt_ratio(sqrt_ratio_x96: int) -> int:
    """Greatest tick whose sqrt ratio is <= ``sqrt_ratio_x96``."""
    if sqrt_ratio_x96 < MIN_SQRT_RATIO or sqrt_ratio_x96 >= MAX_SQRT_RATIO:
        raise ValidationError(
            "SQRT_RATIO",
            f"sqrt ratio {sqrt_ratio_x96} out of bounds [{MIN_SQRT_RATIO}, {MAX_SQRT_RATIO})",
            sqrt_ratio_x96=sqrt_ratio_x96,
        )

    sqrt_ratio_x128 = sqrt_ratio_x96 << 32
    msb = most_significant_bit(sqrt_ratio_x128)
    if msb >= 128:
        r = sqrt_ratio_x128 >> (msb - 127)
    else:
        r = sqrt_ratio_x128 << (127 - msb)

    log_2 = (msb - 128) << 64
    for i in range(14):
        r = (r * r) >> 127
        f = r >> 128
        log_2 |= f << (63 - i)
        r >>= f

    log_sqrt10001 = log_2 * _LOG_SQRT10001_MULTIPLIER

    tick_low = (log_sqrt10001 - _TICK_LOW_OFFSET) >> 128
    tick_high = (log_sqrt10001 + _TICK_HIGH_OFFSET) >> 128

    if tick_low == tick_high:
        return tick_low
    # tick_high only when its ratio does not exceed the input; otherwise tick_low
    return tick_high if get_sqrt_ratio_at_tick(tick_high) <= sqrt_ratio_x96 else tick_low


def nearest_usable_tick(tick: int, tick_spacing: int) -> int:
    """Closest multiple of ``tick_spacing`` to ``tick`` that is still within bounds.

    Halves round up, so -5 with spacing 10 gives 0 and 5 gives 10.
    """
    if not isinstance(tick_spacing, int) or tick_spacing <= 0:
        raise ValidationError("TICK_SPACING", "tick spacing must be a positive integer", tick_spacing=tick_spacing)
    if not isinstance(tick, int) or tick < MIN_TICK or tick > MAX_TICK:
        raise ValidationError("TICK_BOUND", f"tick {tick} out of bounds [{MIN_TICK}, {MAX_TICK}]", tick=tick)
    rounded = (2 * tick + tick_spacing) // (2 * tick_spacing) * tick_spacing
    if rounded < MIN_TICK:
        return rounded + tick_spacing
    if rounded > MAX_TICK:
        return rounded - tick_spacing
    return rounded


def tick_to_price(base: Token, quote: Token, tick: int) -> Fraction:
    """Raw-unit price of ``base`` in ``quote`` at ``tick``."""
    ratio_x192 = get_sqrt_ratio_at_tick(tick) ** 2
    if base.sorts_before(quote):
        return Fraction(ratio_x192, Q192)
    return Fraction(Q192, ratio_x192)


def price_to_closest_tick(base: Token, quote: Token, price: Fraction) -> int:
    """Tick whose range holds ``price`` (base in quote, raw units).

    For base sorted before quote that is the greatest tick priced at or below
    ``price``; otherwise prices fall as ticks rise and the bound flips.
    """
    price = Fraction(price)
    if price <= 0:
        raise ValidationError("PRICE", "price must be positive", price=str(price))
    sorted_ = base.sorts_before(quote)
    if sorted_:
        sqrt_ratio_x96 = encode_sqrt_ratio_x96(price.numerator, price.denominator)
    else:
        sqrt_ratio_x96 = encode_sqrt_ratio_x96(price.denominator, price.numerator)

    tick = get_tick_at_sqrt_ratio(sqrt_ratio_x96)
    # encoding rounds down, so the price may already have reached the next tick
    next_tick_price = tick_to_price(base, quote, tick + 1)
    if sorted_:
        if price >= next_tick_price:
            tick += 1
    elif price <= next_tick_price:
        tick += 1
    return tick


__all__ = [
    "MIN_TICK",
    "MAX_TICK",
    "MIN_SQRT_RATIO",
    "MAX_SQRT_RATIO",
    "most_significant_bit",
    "least_significant_bit",
    "get_sqrt_ratio_at_tick",
    "get_tick_at_sqrt_ratio",
    "nearest_usable_tick",
    "tick_to_price",
    "price_to_closest_tick",
]
