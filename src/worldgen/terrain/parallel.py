"""Row-band fan-out and neighbour access for per-cell grid kernels.

Kernels receive a half-open row range ``[y0, y1)``. They read from arrays
that no band writes during the same pass and write only their own rows, so
the result does not depend on how many bands run concurrently.
"""

from collections.abc import Callable
from concurrent import futures

import numpy as np
from numpy.typing import NDArray

# (dy, dx) offsets, cardinal then diagonal
CARDINAL_OFFSETS: tuple[tuple[int, int], ...] = ((-1, 0), (0, 1), (1, 0), (0, -1))
MOORE_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1), (0, 1),
    (1, -1), (1, 0), (1, 1),
)


def row_bands(height: int, workers: int) -> list[tuple[int, int]]:
    """Split ``height`` rows into at most ``workers`` contiguous bands."""
    count = max(1, min(workers, height))
    edges = np.linspace(0, height, count + 1).astype(int)
    return [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]


def run_bands(kernel: Callable[[int, int], None], height: int, workers: int) -> None:
    """Run ``kernel(y0, y1)`` over disjoint row bands and wait for all of them.

    Exceptions raised inside a band propagate to the caller.
    """
    bands = row_bands(height, workers)
    if len(bands) == 1:
        kernel(*bands[0])
        return

    with futures.ThreadPoolExecutor(max_workers=len(bands)) as pool:
        pending = [pool.submit(kernel, y0, y1) for y0, y1 in bands]
        for future in pending:
            future.result()


def band_shift(
    arr: NDArray,
    y0: int,
    y1: int,
    dy: int,
    dx: int,
) -> NDArray:
    """Values of the neighbour at ``(y + dy, x + dx)`` for rows ``[y0, y1)``.

    X wraps around the cylinder. Y is clamped to the map, so callers must
    mask rows where :func:`band_row_valid` is False.
    """
    rows = np.clip(np.arange(y0 + dy, y1 + dy), 0, arr.shape[0] - 1)
    shifted = arr[rows]
    if dx:
        shifted = np.roll(shifted, -dx, axis=1)
    return shifted


def band_row_valid(y0: int, y1: int, dy: int, height: int) -> NDArray[np.bool_]:
    """Column vector marking rows whose ``dy`` neighbour lies on the map."""
    ys = np.arange(y0 + dy, y1 + dy)
    return ((ys >= 0) & (ys < height))[:, np.newaxis]


def distinct_offsets(
    offsets: tuple[tuple[int, int], ...],
    width: int,
) -> list[tuple[int, int]]:
    """Drop offsets that reach the same cell on narrow wrapped maps.

    On a map only one or two tiles wide, ``dx = -1`` and ``dx = +1`` land on
    the same column, and ``dx = ±1`` may land on the cell itself.
    """
    seen: set[tuple[int, int]] = set()
    result = []
    for dy, dx in offsets:
        key = (dy, dx % width)
        if key == (0, 0) or key in seen:
            continue
        seen.add(key)
        result.append((dy, dx))
    return result
