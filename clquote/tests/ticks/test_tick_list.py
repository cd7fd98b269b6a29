import random

import pytest

from clquote.common.errors import TickNotFoundError, ValidationError
from clquote.ticks import tick_list
from clquote.ticks.provider import NoTickDataProvider, TickListDataProvider
from clquote.ticks.tick_list import Tick

ONE = 10**18


def _reference(indices, tick, lte, spacing):
    """Linear scan bounded to the 256-wide compressed word."""
    compressed = tick // spacing
    if lte:
        word_start = ((compressed >> 8) << 8) * spacing
        hits = [i for i in indices if word_start <= i <= tick]
        return (max(hits), True) if hits else (word_start, False)
    word_end = (((((compressed + 1) >> 8) + 1) << 8) - 1) * spacing
    hits = [i for i in indices if tick < i <= word_end]
    return (min(hits), True) if hits else (word_end, False)


def _random_ticks(rng, spacing, count, span):
    indices = sorted(rng.sample(range(-span, span + 1), count))
    return [Tick(i * spacing, 1, 0) for i in indices]


TICKS = [Tick(-7803, 10, 10), Tick(-1, 20, 20), Tick(1, 20, -20), Tick(7803, 10, -10)]


def test_validate_accepts_consistent_ticks():
    tick_list.validate_list(TICKS, 1)
    tick_list.validate_list([], 10)


def test_validate_rejects_unsorted():
    with pytest.raises(ValidationError) as err:
        tick_list.validate_list([TICKS[1], TICKS[0], TICKS[2], TICKS[3]], 1)
    assert err.value.kind == "SORTED"


def test_validate_rejects_nonzero_net():
    with pytest.raises(ValidationError) as err:
        tick_list.validate_list([Tick(-1, 5, 5), Tick(1, 4, -4)], 1)
    assert err.value.kind == "ZERO_NET"


def test_validate_rejects_spacing():
    with pytest.raises(ValidationError) as err:
        tick_list.validate_list(TICKS, 0)
    assert err.value.kind == "TICK_SPACING_NONZERO"
    with pytest.raises(ValidationError) as err:
        tick_list.validate_list(TICKS, 2)
    assert err.value.kind == "TICK_SPACING"


def test_validate_rejects_duplicates():
    with pytest.raises(ValidationError):
        tick_list.validate_list([Tick(1, 1, 1), Tick(1, 1, -1)], 1)


def test_tick_index_bounds():
    with pytest.raises(ValidationError):
        Tick(887273, 0, 0)
    with pytest.raises(ValidationError):
        Tick(0, -1, 0)


def test_get_tick():
    assert tick_list.get_tick(TICKS, -1) == TICKS[1]
    with pytest.raises(TickNotFoundError):
        tick_list.get_tick(TICKS, 0)
    with pytest.raises(TickNotFoundError):
        tick_list.get_tick(TICKS, -8000)


def test_next_initialized_tick():
    assert tick_list.next_initialized_tick(TICKS, -7804, False) == TICKS[0]
    assert tick_list.next_initialized_tick(TICKS, 0, True) == TICKS[1]
    assert tick_list.next_initialized_tick(TICKS, 0, False) == TICKS[2]
    assert tick_list.next_initialized_tick(TICKS, 9000, True) == TICKS[3]
    with pytest.raises(TickNotFoundError):
        tick_list.next_initialized_tick(TICKS, -7804, True)
    with pytest.raises(TickNotFoundError):
        tick_list.next_initialized_tick(TICKS, 7803, False)


def test_within_one_word_examples():
    assert tick_list.next_initialized_tick_within_one_word(TICKS, -10000, True, 1) == (-10240, False)
    assert tick_list.next_initialized_tick_within_one_word(TICKS, -7803, True, 1) == (-7803, True)
    assert tick_list.next_initialized_tick_within_one_word(TICKS, 0, True, 1) == (0, False)
    assert tick_list.next_initialized_tick_within_one_word(TICKS, -1, True, 1) == (-1, True)
    assert tick_list.next_initialized_tick_within_one_word(TICKS, -1, False, 1) == (1, True)
    assert tick_list.next_initialized_tick_within_one_word(TICKS, 1, False, 1) == (255, False)
    assert tick_list.next_initialized_tick_within_one_word(TICKS, 10000, False, 1) == (10239, False)


def test_within_one_word_empty_list_returns_boundaries():
    assert tick_list.next_initialized_tick_within_one_word([], 5, True, 10) == (0, False)
    assert tick_list.next_initialized_tick_within_one_word([], 5, False, 10) == (2550, False)
    assert tick_list.next_initialized_tick_within_one_word([], -5, True, 10) == (-2560, False)


@pytest.mark.parametrize("spacing", [1, 10, 60])
@pytest.mark.parametrize("lte", [True, False])
def test_within_one_word_matches_linear_scan(spacing, lte):
    rng = random.Random(spacing * 2 + lte)
    for _ in range(20):
        ticks = _random_ticks(rng, spacing, rng.randint(1, 12), 700)
        indices = [t.index for t in ticks]
        for _ in range(40):
            tick = rng.randint(-800 * spacing, 800 * spacing)
            got = tick_list.next_initialized_tick_within_one_word(ticks, tick, lte, spacing)
            assert got == _reference(indices, tick, lte, spacing), (indices, tick, lte)


@pytest.mark.asyncio
async def test_list_provider_accepts_dicts_and_validates():
    provider = TickListDataProvider(
        [{"index": -60, "liquidity_gross": ONE, "liquidity_net": ONE}, {"index": 60, "liquidity_gross": ONE, "liquidity_net": -ONE}],
        60,
    )
    assert (await provider.get_tick(60)).liquidity_net == -ONE
    assert await provider.next_initialized_tick_within_one_word(0, False, 60) == (60, True)
    with pytest.raises(ValidationError):
        TickListDataProvider([Tick(-60, ONE, ONE)], 60)


@pytest.mark.asyncio
async def test_no_tick_data_provider_fails():
    provider = NoTickDataProvider()
    with pytest.raises(ValidationError, match="No tick data provider was given"):
        await provider.get_tick(0)
    with pytest.raises(ValidationError):
        await provider.next_initialized_tick_within_one_word(0, True, 60)
