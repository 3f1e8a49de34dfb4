"""
Adaptive axis ticks for the display base.

Tick spacing is picked from a fixed set of "nice" steps so that roughly
``0.3 * sqrt(board_dimension)`` major ticks fit, then marks, labels and the
axis title are laid out as 2D geometry along an axis strip.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List, Sequence, Tuple

from shapely import affinity

from data_sculpture.contracts import AxisRange, DegenerateRangeError, Vec2
from data_sculpture.coordinates import scale_value
from data_sculpture.profiles import rectangle
from data_sculpture.typesetting import render_text

logger = logging.getLogger(__name__)

TICK_DENSITY = 0.3
MINOR_TICKS = 4
# (upper bound of normalized interval, snapped value)
NICE_STEPS: Tuple[Tuple[float, float], ...] = (
    (1.5, 1.0),
    (2.25, 2.0),
    (3.0, 2.5),
    (7.5, 5.0),
)


@dataclass(frozen=True)
class TickScale:
    size: float
    magnitude: float
    precision: int
    target_count: float


@dataclass(frozen=True)
class AxisStrip:
    """Where an axis is drawn on the base plane.

    Axis coordinate ``t`` (mm) sits at ``start + t * (cos angle, sin angle)``;
    marks grow along ``normal``. ``sign`` is the direction the values run in
    relative to the reading direction and sets the title alignment.
    """

    start: Vec2
    angle: float
    normal: Vec2
    sign: int = 1


@dataclass
class AxisLayout:
    scale: TickScale
    majors: List[float]
    minors: List[float]
    marks: List[object] = field(default_factory=list)
    labels: List[object] = field(default_factory=list)
    title: object = None

    def geometries(self) -> List[object]:
        items = list(self.marks) + list(self.labels)
        if self.title is not None and not self.title.is_empty:
            items.append(self.title)
        return items


def snap_to_nice(normalized: float) -> float:
    for upper, value in NICE_STEPS:
        if normalized < upper:
            return value
    return 10.0


def nice_tick_size(span: float, board_dimension: float) -> TickScale:
    """Tick size in {1, 2, 2.5, 5, 10} x 10^k close to span / target count."""
    if span <= 0 or board_dimension <= 0:
        raise ValueError(f"span and board dimension must be positive ({span}, {board_dimension})")
    target_count = TICK_DENSITY * math.sqrt(board_dimension)
    raw = span / target_count
    exponent = -math.floor(math.log10(raw))
    magnitude = 10.0 ** exponent
    snapped = snap_to_nice(raw * magnitude)
    precision = max(0, exponent + (1 if snapped == 2.5 else 0))
    return TickScale(
        size=snapped / magnitude,
        magnitude=magnitude,
        precision=precision,
        target_count=target_count,
    )


def axis_ticks(
    axis_range: AxisRange,
    board_dimension: float,
) -> Tuple[TickScale, List[float], List[float]]:
    """Tick scale plus major and minor tick values for one axis."""
    scale = nice_tick_size(axis_range.span, board_dimension)
    majors = major_ticks(axis_range, scale.size)
    return scale, majors, minor_ticks(majors, scale.size)


def major_ticks(axis_range: AxisRange, size: float) -> List[float]:
    first = math.ceil(axis_range.minimum / size - 1e-9)
    last = math.floor(axis_range.maximum / size + 1e-9)
    return [k * size for k in range(first, last + 1)]


def minor_ticks(majors: Sequence[float], size: float) -> List[float]:
    step = size / (MINOR_TICKS + 1)
    return [
        major + j * step
        for major in majors[:-1]
        for j in range(1, MINOR_TICKS + 1)
    ]


def format_tick(value: float, precision: int) -> str:
    text = f"{value:.{precision}f}"
    if text.startswith("-") and float(text) == 0.0:
        text = text[1:]
    return text


def title_alignment(sign: int) -> str:
    return "right" if sign > 0 else "left"


def layout_axis(
    axis_range: AxisRange,
    board_dimension: float,
    padding: Tuple[float, float],
    strip: AxisStrip,
    title: str,
    tick_length: float,
    tick_width: float,
    label_size: float,
    text: Callable = render_text,
) -> AxisLayout:
    """Tick marks, numeric labels and title for one axis.

    Raises:
        DegenerateRangeError: if the range is empty.
    """
    if axis_range.span <= 0:
        raise DegenerateRangeError(title, axis_range.minimum, axis_range.maximum)

    scale, majors, minors = axis_ticks(axis_range, board_dimension)
    low, high = padding[0], board_dimension - padding[1]

    ux, uy = math.cos(strip.angle), math.sin(strip.angle)
    nx, ny = strip.normal
    # Keep text upright whichever way the strip runs.
    text_angle = strip.angle if ux >= -1e-9 else strip.angle - math.pi

    def place(t: float, offset: float) -> Vec2:
        return (
            strip.start[0] + ux * t + nx * offset,
            strip.start[1] + uy * t + ny * offset,
        )

    def tick(t: float, length: float):
        cx, cy = place(t, length / 2.0)
        return rectangle(cx, cy, tick_width, length, angle=strip.angle)

    def put_text(value: str, anchor: Vec2, halign: str):
        glyphs = text(value, label_size, halign=halign)
        glyphs = affinity.translate(glyphs, yoff=-label_size / 2.0)
        glyphs = affinity.rotate(glyphs, text_angle, origin=(0, 0), use_radians=True)
        return affinity.translate(glyphs, xoff=anchor[0], yoff=anchor[1])

    layout = AxisLayout(scale=scale, majors=majors, minors=minors)
    label_offset = tick_length + label_size
    for value in majors:
        t = scale_value(value, axis_range, low, high)
        layout.marks.append(tick(t, tick_length))
        layout.labels.append(
            put_text(format_tick(value, scale.precision), place(t, label_offset), "center")
        )
    for value in minors:
        layout.marks.append(tick(scale_value(value, axis_range, low, high), tick_length / 2.0))

    layout.title = put_text(
        title,
        place(high, label_offset + 2.0 * label_size),
        title_alignment(strip.sign),
    )
    logger.debug(
        "Axis %s: size=%g majors=%d minors=%d precision=%d",
        title, scale.size, len(majors), len(minors), scale.precision,
    )
    return layout
