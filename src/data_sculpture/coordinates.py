"""
Coordinate normalization from raw sample fields to board millimetres.

Every consumer (path, supports, layout, ticks) must go through
``scale_samples`` / ``to_scaled_point`` so the geometry agrees.
"""
import logging
import math
from typing import List, Sequence, Tuple

from data_sculpture.contracts import (
    AUTO,
    AxisRange,
    DegenerateRangeError,
    Sample,
    ScaledPoint,
    SculptureConfig,
)

logger = logging.getLogger(__name__)

AXIS_NAMES = ("x", "y", "z")


def map_ranges(
    samples: Sequence[Sample],
    config: SculptureConfig,
) -> Tuple[AxisRange, AxisRange, AxisRange]:
    """Resolve the three axis ranges, filling ``"auto"`` bounds from the data.

    Raises:
        DegenerateRangeError: if any resolved range has max <= min.
    """
    fields = config.mapping.as_tuple()[:3]
    ranges = []
    for axis, field_index in enumerate(fields):
        spec = config.axis_range_spec(axis)
        values = [sample[field_index] for sample in samples]
        minimum = min(values) if spec.minimum == AUTO else float(spec.minimum)
        maximum = max(values) if spec.maximum == AUTO else float(spec.maximum)
        if not maximum > minimum:
            raise DegenerateRangeError(AXIS_NAMES[axis], minimum, maximum)
        ranges.append(AxisRange(minimum=float(minimum), maximum=float(maximum)))
    return ranges[0], ranges[1], ranges[2]


def radius_for_magnitude(magnitude: float, area_scale: float) -> float:
    """Area-preserving radius: quadrupling the magnitude doubles the radius."""
    return math.sqrt(max(float(magnitude), 0.0) * area_scale / math.pi)


def scale_value(value: float, axis_range: AxisRange, low: float, high: float) -> float:
    if value == axis_range.maximum:
        return high
    return low + (value - axis_range.minimum) * (high - low) / axis_range.span


def to_scaled_point(
    sample: Sample,
    ranges: Sequence[AxisRange],
    config: SculptureConfig,
) -> ScaledPoint:
    board = config.board
    coords = []
    for axis, field_index in enumerate(config.mapping.as_tuple()[:3]):
        pad_low, pad_high = board.padding(axis)
        coords.append(
            scale_value(
                sample[field_index],
                ranges[axis],
                pad_low,
                board.dimension(axis) - pad_high,
            )
        )
    radius = radius_for_magnitude(sample[config.mapping.magnitude], config.area_scale)
    return ScaledPoint(x=coords[0], y=coords[1], z=coords[2], radius=radius)


def scale_samples(
    samples: Sequence[Sample],
    config: SculptureConfig,
) -> Tuple[Tuple[AxisRange, AxisRange, AxisRange], List[ScaledPoint]]:
    ranges = map_ranges(samples, config)
    points = [to_scaled_point(sample, ranges, config) for sample in samples]
    logger.debug(
        "Scaled %d samples: x=[%g, %g] y=[%g, %g] z=[%g, %g]",
        len(points),
        ranges[0].minimum, ranges[0].maximum,
        ranges[1].minimum, ranges[1].maximum,
        ranges[2].minimum, ranges[2].maximum,
    )
    return ranges, points
