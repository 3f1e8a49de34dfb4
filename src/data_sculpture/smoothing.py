"""Default smoothing collaborator: interpolating 4-point subdivision.

Each level inserts one point between every pair of neighbours and keeps the
existing points, so original row ``i`` ends up at ``i * 2**subdivisions``.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

FOUR_POINT_WEIGHT = 1.0 / 16.0


def smoothed_index(index: int, subdivisions: int) -> int:
    return int(index) * (2 ** int(subdivisions))


def smooth(points: Sequence[Sequence[float]], subdivisions: int, closed: bool = False) -> np.ndarray:
    """Densify ``points`` (N x D) with ``subdivisions`` rounds of subdivision."""
    rows = np.asarray(points, dtype=float)
    if rows.ndim != 2:
        raise ValueError(f"Expected an (N, D) array of points, got shape {rows.shape}")
    for _ in range(max(0, int(subdivisions))):
        rows = _subdivide_once(rows, closed)
    return rows


def _subdivide_once(rows: np.ndarray, closed: bool) -> np.ndarray:
    n = len(rows)
    if n < 2:
        return rows.copy()

    if closed:
        padded = np.vstack([rows[-1:], rows, rows[:2]])
        pair_count = n
    else:
        # Linear extrapolation keeps the ends from curling.
        head = 2.0 * rows[0] - rows[1]
        tail = 2.0 * rows[-1] - rows[-2]
        padded = np.vstack([head, rows, tail])
        pair_count = n - 1

    w = FOUR_POINT_WEIGHT
    out = np.empty((n + pair_count, rows.shape[1]), dtype=float)
    out[0::2][:n] = rows
    for i in range(pair_count):
        p0, p1, p2, p3 = padded[i], padded[i + 1], padded[i + 2], padded[i + 3]
        out[2 * i + 1] = (0.5 + w) * (p1 + p2) - w * (p0 + p3)
    return out
