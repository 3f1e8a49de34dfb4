"""
Laser-cut cradle pieces and the matching base slots.

Each supported sample gets a diagonal leg piece (cut perpendicular to the
path) and a right-angle top piece (cut along the path). Both carry a notch
taken from a slab of the cached data-part solid, grown by the clearance
tolerance. The leg's tab drops into a slot cut in the base at the sample's
ground position; slots and pieces are numbered from the same
SupportIndexSet.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np
import trimesh
from shapely import affinity
from shapely.geometry import Polygon, box
from shapely.ops import unary_union

from data_sculpture.contracts import (
    BuildIssue,
    CradlePiece,
    ScaledPoint,
    SculptureConfig,
    SupportIndexSet,
    Vec2,
)
from data_sculpture.profiles import (
    rectangle,
    scale_about_origin,
    section_profile,
    smooth_outline,
)
from data_sculpture.solids import marker_direction
from data_sculpture.typesetting import render_text

logger = logging.getLogger(__name__)

SLOT_PATTERNS = ("cut", "engrave")


@dataclass
class LayoutBuild:
    pieces: List[CradlePiece] = field(default_factory=list)
    issues: List[BuildIssue] = field(default_factory=list)

    def outlines(self) -> List[object]:
        return [piece.outline for piece in self.pieces]

    def labels(self, size: float) -> List[object]:
        out = []
        for piece in self.pieces:
            glyphs = render_text(piece.label, size, halign="center")
            out.append(affinity.translate(glyphs, *piece.label_anchor))
        return out


def plan_azimuth(
    index: int,
    point: ScaledPoint,
    path: np.ndarray,
    subdivisions: int,
    closed: bool = False,
) -> Tuple[float, bool]:
    """Azimuth of the path at a sample in plan view; (0, False) when vertical."""
    direction = marker_direction(index, point, path, subdivisions, closed)
    if math.hypot(direction[0], direction[1]) < 1e-9:
        return 0.0, False
    return math.atan2(direction[1], direction[0]), True


def cradle_wall(radius: float, thickness: float) -> float:
    return max(2.0 * thickness, radius)


def notch(
    solid: trimesh.Trimesh,
    point: ScaledPoint,
    azimuth: float,
    config: SculptureConfig,
):
    """Section of the solid around ``point`` grown by the clearance tolerance."""
    radius = max(point.radius, config.min_radius)
    window = 4.0 * (radius + config.clearance_tolerance) + config.board.thickness
    shadow = section_profile(solid, point.position, azimuth, config.board.thickness, window)
    return scale_about_origin(shadow, (radius + config.clearance_tolerance) / radius)


def leg_outline(point: ScaledPoint, config: SculptureConfig) -> Polygon:
    """Diagonal leg in (across-path, vertical) coordinates, sample at the origin."""
    t = config.board.thickness
    radius = max(point.radius, config.min_radius)
    reach = radius + config.clearance_tolerance + cradle_wall(radius, t)
    ground = -(point.z - t)
    stem = max(2.0 * t, config.tab_length + 2.0 * t)

    top_block = box(-reach, -reach, reach, 0.0)
    column = box(-stem / 2.0, ground, stem / 2.0, 0.0)
    brace = Polygon([
        (-stem / 2.0, -reach),
        (stem / 2.0 + config.leg_spread + radius, ground),
        (-stem / 2.0, ground),
    ])
    body = smooth_outline(
        unary_union([top_block, column, brace]),
        config.fillet_radius_coarse,
        config.fillet_radius_fine,
    )
    min_x, _, max_x, max_y = body.bounds
    body = body.intersection(box(min_x - 1.0, ground, max_x + 1.0, max_y + 1.0))
    tab = box(-config.tab_length / 2.0, ground - t, config.tab_length / 2.0, ground + 1e-6)
    return unary_union([body, tab])


def leg_slit(point: ScaledPoint, config: SculptureConfig) -> Polygon:
    """Slit the top piece drops into, opening into the notch."""
    t = config.board.thickness
    radius = max(point.radius, config.min_radius)
    reach = radius + config.clearance_tolerance + cradle_wall(radius, t)
    half = (t + config.clearance_tolerance) / 2.0
    return box(-half, -reach, half, 0.0)


def top_outline(point: ScaledPoint, config: SculptureConfig) -> Polygon:
    """Right-angle top piece in (along-path, vertical) coordinates."""
    t = config.board.thickness
    radius = max(point.radius, config.min_radius)
    reach = radius + config.clearance_tolerance + cradle_wall(radius, t)
    return smooth_outline(
        box(-reach, -reach, reach, 0.0),
        config.fillet_radius_coarse,
        config.fillet_radius_fine,
    )


def cradle_pieces(
    solid: trimesh.Trimesh,
    points: Sequence[ScaledPoint],
    path: np.ndarray,
    support_set: SupportIndexSet,
    config: SculptureConfig,
    row_origin: Vec2 = (0.0, 0.0),
) -> LayoutBuild:
    """Leg and top piece for every supported sample, nested in one row."""
    build = LayoutBuild()
    if not len(support_set):
        logger.info("No supported samples; no cradle pieces emitted")
        return build

    t = config.board.thickness
    slot_x = row_origin[0]
    for order, index in support_set:
        point = points[index]
        azimuth, ok = plan_azimuth(index, point, path, config.subdivisions, config.closed_path)
        if not ok:
            build.issues.append(
                BuildIssue(
                    code="vertical_path",
                    severity="warning",
                    message=f"cradle {order}: path is vertical at sample {index}; pieces cut along X",
                    index=index,
                )
            )
            logger.warning("Cradle %d: vertical path at sample %d, using azimuth 0", order, index)

        leg_notch = notch(solid, point, azimuth + math.pi / 2.0, config)
        top_notch = notch(solid, point, azimuth, config)
        if leg_notch.is_empty or top_notch.is_empty:
            build.issues.append(
                BuildIssue(
                    code="empty_section",
                    severity="warning",
                    message=f"cradle {order}: solid does not reach sample {index}; notch omitted",
                    index=index,
                )
            )
            logger.warning("Cradle %d: empty cross-section at sample %d", order, index)

        leg = leg_outline(point, config).difference(leg_notch).difference(leg_slit(point, config))
        top = top_outline(point, config).difference(top_notch)

        # Tab bottom (v = -z) lands on the row baseline.
        leg_minx = leg.bounds[0]
        leg = affinity.translate(leg, xoff=slot_x - leg_minx, yoff=row_origin[1] + point.z)
        leg_anchor = (
            slot_x - leg_minx,
            row_origin[1] + point.z - (point.z - t) / 2.0,
        )
        build.pieces.append(CradlePiece("leg", order, index, leg, leg_anchor))
        slot_x = leg.bounds[2] + config.arrangement_distance

        top_minx, top_miny = top.bounds[0], top.bounds[1]
        top = affinity.translate(top, xoff=slot_x - top_minx, yoff=row_origin[1] - top_miny)
        top_anchor = ((top.bounds[0] + top.bounds[2]) / 2.0, top.bounds[1] + config.label_size)
        build.pieces.append(CradlePiece("top", order, index, top, top_anchor))
        slot_x = top.bounds[2] + config.arrangement_distance

    logger.info("Cradle layout: %d pieces for %d supports", len(build.pieces), len(support_set))
    return build


def cradle_slots_2d(
    points: Sequence[ScaledPoint],
    path: np.ndarray,
    support_set: SupportIndexSet,
    config: SculptureConfig,
    pattern: str = "cut",
) -> List[object]:
    """Base-plate slots (``"cut"``) or their order labels (``"engrave"``)."""
    if pattern not in SLOT_PATTERNS:
        raise ValueError(f"pattern must be one of {SLOT_PATTERNS}, got {pattern!r}")
    t = config.board.thickness
    shapes: List[object] = []
    for order, index in support_set:
        point = points[index]
        azimuth, _ = plan_azimuth(index, point, path, config.subdivisions, config.closed_path)
        if pattern == "cut":
            shapes.append(
                rectangle(
                    point.x,
                    point.y,
                    config.tab_length + config.clearance_tolerance,
                    t + config.clearance_tolerance,
                    angle=azimuth + math.pi / 2.0,
                )
            )
        else:
            offset = t + config.label_size
            glyphs = render_text(str(order), config.label_size, halign="center")
            shapes.append(
                affinity.translate(
                    glyphs,
                    xoff=point.x + math.cos(azimuth) * offset,
                    yoff=point.y + math.sin(azimuth) * offset - config.label_size / 2.0,
                )
            )
    return shapes
