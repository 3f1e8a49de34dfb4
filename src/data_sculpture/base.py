"""
Display base: plate outline, axis strips with ticks, cradle slots.

The plate is the board footprint grown by axis strips on the front (X),
left (Y) and back (Z) edges. Each base output mode takes a different slice
of the same geometry so that engrave and cut files never overlap.
"""
import logging
import math
from typing import List, Sequence, Tuple

import trimesh
from shapely.geometry import box
from shapely.ops import unary_union

from data_sculpture.contracts import (
    AxisRange,
    BuildIssue,
    DegenerateRangeError,
    SculptureConfig,
)
from data_sculpture.profiles import polygons_of
from data_sculpture.ticks import AxisLayout, AxisStrip, layout_axis

logger = logging.getLogger(__name__)


def axis_strips(config: SculptureConfig) -> Tuple[AxisStrip, AxisStrip, AxisStrip]:
    board = config.board
    return (
        AxisStrip(start=(0.0, 0.0), angle=0.0, normal=(0.0, -1.0), sign=1),
        AxisStrip(start=(0.0, 0.0), angle=math.pi / 2.0, normal=(-1.0, 0.0), sign=1),
        AxisStrip(start=(board.width, board.depth), angle=math.pi, normal=(0.0, 1.0), sign=-1),
    )


def strip_regions(config: SculptureConfig):
    board = config.board
    sw = board.axis_strip_width
    z_left = min(0.0, board.width - board.height)
    return [
        box(-sw, -sw, board.width, 0.0),
        box(-sw, -sw, 0.0, board.depth + sw),
        box(z_left, board.depth, board.width, board.depth + sw),
    ]


def plate_outline(config: SculptureConfig):
    board = config.board
    return unary_union([box(0.0, 0.0, board.width, board.depth)] + strip_regions(config))


def alignment_frame(config: SculptureConfig):
    """Thin ring along the plate edge used to register the sheet."""
    outline = plate_outline(config)
    return outline.difference(outline.buffer(-config.frame_width, join_style="mitre"))


def axis_layouts(
    ranges: Sequence[AxisRange],
    config: SculptureConfig,
) -> Tuple[List[AxisLayout], List[BuildIssue]]:
    layouts: List[AxisLayout] = []
    issues: List[BuildIssue] = []
    board = config.board
    for axis, strip in enumerate(axis_strips(config)):
        title = config.axis_titles[axis]
        try:
            layouts.append(
                layout_axis(
                    ranges[axis],
                    board.dimension(axis),
                    board.padding(axis),
                    strip,
                    title,
                    config.tick_length,
                    config.tick_width,
                    config.label_size,
                )
            )
        except DegenerateRangeError as exc:
            issues.append(BuildIssue("degenerate_range", "warning", f"axis {title}: {exc}", axis))
            logger.warning("Axis %s skipped: %s", title, exc)
    return layouts, issues


def engraving(layouts: Sequence[AxisLayout]) -> List[object]:
    shapes: List[object] = []
    for layout in layouts:
        shapes.extend(g for g in layout.geometries() if not g.is_empty)
    return shapes


def base_solid(layouts: Sequence[AxisLayout], config: SculptureConfig) -> trimesh.Trimesh:
    """Plate with raised axis strips; ticks and labels sunk into the strips."""
    board = config.board
    plate = trimesh.creation.extrude_polygon(plate_outline(config), board.thickness)
    parts = [plate]
    strip_top = board.thickness + board.axis_strip_height
    if board.axis_strip_height > 0:
        for polygon in polygons_of(unary_union(strip_regions(config))):
            strip = trimesh.creation.extrude_polygon(polygon, board.axis_strip_height)
            strip.apply_translation([0.0, 0.0, board.thickness])
            parts.append(strip)
    solid = trimesh.boolean.union(parts) if len(parts) > 1 else plate

    depth = min(board.thickness, board.axis_strip_height or board.thickness) / 2.0
    cutters = []
    for polygon in polygons_of(unary_union(engraving(layouts))):
        cutter = trimesh.creation.extrude_polygon(polygon, depth + 1.0)
        cutter.apply_translation([0.0, 0.0, strip_top - depth])
        cutters.append(cutter)
    if cutters:
        solid = trimesh.boolean.difference([solid] + cutters)
    logger.info("Base solid: %d engraved shapes, %d faces", len(cutters), len(solid.faces))
    return solid
