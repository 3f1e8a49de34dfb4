"""
Decide which samples need their own support during fabrication.

A sample whose "shadow" (other samples laterally within tolerance and
strictly below it) is non-empty can lean on that lower material, so only
unshadowed samples get supports.
"""
import logging
from typing import List, Sequence, Set

from data_sculpture.contracts import SupportIndexSet

logger = logging.getLogger(__name__)


def find_shadowed(
    index: int,
    positions: Sequence[Sequence[float]],
    tolerance: float,
    neighbor_window: int = 1,
) -> Set[int]:
    """Indices of samples lying under ``positions[index]``.

    ``neighbor_window`` excludes ``j`` in ``[index - w, index + w]``; at the
    ends of the sequence the window is simply clipped. ``0`` skips only the
    sample itself, a negative window disables neighbour exclusion (the
    sample itself can never shadow itself since ``z < z`` is false).
    """
    xi, yi, zi = (float(v) for v in positions[index][:3])
    shadow: Set[int] = set()
    for j, pos in enumerate(positions):
        if neighbor_window >= 0 and abs(j - index) <= neighbor_window:
            continue
        xj, yj, zj = (float(v) for v in pos[:3])
        if abs(xj - xi) <= tolerance and abs(yj - yi) <= tolerance and zj < zi:
            shadow.add(j)
    return shadow


def select_support_indices(
    positions: Sequence[Sequence[float]],
    min_distance: float,
    step: int = 1,
    exclude: Sequence[int] = (),
    neighbor_window: int = 1,
) -> SupportIndexSet:
    """Samples needing support, scanned with stride ``step``.

    ``exclude`` refers to positions in the filtered, stride-ordered list of
    unshadowed samples, not to sample indices. Pieces and base slots are
    numbered by that position.
    """
    if step < 1:
        raise ValueError(f"step must be >= 1, got {step}")

    unshadowed: List[int] = [
        i
        for i in range(0, len(positions), step)
        if not find_shadowed(i, positions, min_distance, neighbor_window)
    ]
    excluded = set(int(e) for e in exclude)
    entries = tuple(
        (order, index) for order, index in enumerate(unshadowed) if order not in excluded
    )

    if not entries:
        logger.info("Support selection: no samples need support (%d scanned)", len(positions))
    else:
        logger.info(
            "Support selection: %d of %d samples (step=%d, tolerance=%.2f, excluded=%d)",
            len(entries), len(positions), step, min_distance, len(unshadowed) - len(entries),
        )
    return SupportIndexSet(
        entries=entries,
        tolerance=float(min_distance),
        step=int(step),
        exclude=tuple(sorted(excluded)),
        neighbor_window=int(neighbor_window),
    )
