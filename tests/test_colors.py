from __future__ import annotations

import random
import re
import threading

from docker_net_graph.model.colors import COLORS, HOST_COLOR, ColorAllocator

HEX_COLOR_RE = re.compile(r"^#[0-9a-f]{6}$")


def test_palette_has_eighteen_distinct_colors() -> None:
    assert len(COLORS) == 18
    assert len(set(COLORS)) == 18
    assert HOST_COLOR not in COLORS


def test_first_calls_follow_palette_order() -> None:
    allocator = ColorAllocator()
    picked = [allocator.next_color() for _ in range(len(COLORS))]
    assert picked == list(COLORS)
    assert allocator.allocated == 18


def test_exhausted_palette_falls_back_to_random_hex() -> None:
    allocator = ColorAllocator(rng=random.Random(42))
    for _ in range(len(COLORS)):
        allocator.next_color()

    extra = [allocator.next_color() for _ in range(5)]
    assert all(HEX_COLOR_RE.match(c) for c in extra)


def test_allocators_are_independent() -> None:
    first = ColorAllocator()
    first.next_color()
    first.next_color()

    second = ColorAllocator()
    assert second.next_color() == COLORS[0]


def test_concurrent_allocation_keeps_palette_unique() -> None:
    allocator = ColorAllocator()
    results = []
    lock = threading.Lock()

    def _worker() -> None:
        color = allocator.next_color()
        with lock:
            results.append(color)

    threads = [threading.Thread(target=_worker) for _ in range(len(COLORS))]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == sorted(COLORS)
