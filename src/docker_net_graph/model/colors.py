from __future__ import annotations

import random
import threading
from typing import Optional, Sequence, Tuple

COLORS: Tuple[str, ...] = (
    "#1f78b4",
    "#33a02c",
    "#e31a1c",
    "#ff7f00",
    "#6a3d9a",
    "#b15928",
    "#a6cee3",
    "#b2df8a",
    "#fdbf6f",
    "#cab2d6",
    "#90f530",
    "#0d8bad",
    "#e98420",
    "#0e9997",
    "#6a5164",
    "#afa277",
    "#149ead",
    "#a54a56",
)
HOST_COLOR = "#808080"


class ColorAllocator:
    """
    Hands out palette colors in order, then random #RRGGBB values.

    Random colors are not checked against earlier picks. One allocator is
    created per run and shared by everything that assigns network colors.
    """

    def __init__(self, palette: Sequence[str] = COLORS, *, rng: Optional[random.Random] = None) -> None:
        self._palette = tuple(palette)
        self._cursor = 0
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

    @property
    def allocated(self) -> int:
        return self._cursor

    def next_color(self) -> str:
        with self._lock:
            if self._cursor < len(self._palette):
                color = self._palette[self._cursor]
                self._cursor += 1
                return color
            self._cursor += 1
            return f"#{self._rng.randrange(0xFFFFFF):06x}"
