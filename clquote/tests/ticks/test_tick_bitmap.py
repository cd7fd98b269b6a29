import random

import pytest

from clquote.ticks import tick_bitmap, tick_list
from clquote.ticks.tick_list import Tick


def test_position():
    assert tick_bitmap.position(0) == (0, 0)
    assert tick_bitmap.position(255) == (0, 255)
    assert tick_bitmap.position(256) == (1, 0)
    assert tick_bitmap.position(-1) == (-1, 255)
    assert tick_bitmap.position(-257) == (-2, 255)


def test_build_bitmap_sets_bits():
    words = tick_bitmap.build_bitmap([-60, 0, 60, 15360], 60)
    assert words[-1] == 1 << 255
    assert words[0] == 0b11
    assert words[1] == 1


@pytest.mark.parametrize("spacing", [1, 10, 200])
@pytest.mark.parametrize("lte", [True, False])
def test_word_scan_agrees_with_tick_list(spacing, lte):
    rng = random.Random(1000 + spacing + lte)
    for _ in range(20):
        indices = sorted(rng.sample(range(-900, 901), rng.randint(0, 15)))
        ticks = [Tick(i * spacing, 1, 0) for i in indices]
        words = tick_bitmap.build_bitmap([t.index for t in ticks], spacing)
        for _ in range(40):
            tick = rng.randint(-1000 * spacing, 1000 * spacing)
            word = words.get(tick_bitmap.word_for_search(tick, lte, spacing), 0)
            expected = tick_list.next_initialized_tick_within_one_word(ticks, tick, lte, spacing)
            assert tick_bitmap.next_initialized_tick_in_word(word, tick, lte, spacing) == expected
