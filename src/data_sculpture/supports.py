"""
3D-printable support geometry.

Two strategies, both finished by subtracting the cached data-part solid so
only the scaffolding the part does not already fill remains:

  - columns: a square column under every selected sample, capped by a
    socket (sphere cut at the sample centre) that seats the tube.
  - walls: a thin slab under every consecutive pair of samples whose base
    height climbs in a staircase that restarts every ``wall_steps`` walls.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
import trimesh

from data_sculpture.contracts import (
    BuildIssue,
    ScaledPoint,
    SculptureConfig,
    SupportIndexSet,
    SupportStrategy,
)

logger = logging.getLogger(__name__)


@dataclass
class SupportBuild:
    mesh: Optional[trimesh.Trimesh]
    issues: List[BuildIssue] = field(default_factory=list)
    element_count: int = 0


def column_width(radius: float, thickness: float) -> float:
    return max(thickness, 2.0 * radius / 3.0)


def build_socket(point: ScaledPoint, config: SculptureConfig) -> trimesh.Trimesh:
    """Lower half of a sphere around the sample, sized from its radius."""
    radius = max(point.radius, config.min_radius) * config.socket_scale
    sphere = trimesh.creation.icosphere(subdivisions=config.sphere_subdivisions, radius=radius)
    sphere.apply_translation(point.position)
    keep = trimesh.creation.box(extents=[radius * 2.2, radius * 2.2, radius * 1.1])
    keep.apply_translation([point.x, point.y, point.z - radius * 0.55])
    return trimesh.boolean.intersection([sphere, keep])


def build_column(point: ScaledPoint, config: SculptureConfig) -> Optional[trimesh.Trimesh]:
    floor = config.board.thickness
    height = point.z - floor
    if height <= 0:
        return None
    width = column_width(point.radius, config.board.thickness)
    column = trimesh.creation.box(extents=[width, width, height])
    column.apply_translation([point.x, point.y, floor + height / 2.0])
    return column


def column_supports(
    points: Sequence[ScaledPoint],
    support_set: SupportIndexSet,
    config: SculptureConfig,
) -> Tuple[List[trimesh.Trimesh], List[BuildIssue]]:
    pieces: List[trimesh.Trimesh] = []
    issues: List[BuildIssue] = []
    for order, index in support_set:
        point = points[index]
        column = build_column(point, config)
        if column is None:
            logger.debug("Support %d (sample %d) sits on the base; socket only", order, index)
        else:
            pieces.append(column)
        try:
            pieces.append(build_socket(point, config))
        except Exception as exc:
            issues.append(
                BuildIssue(
                    code="socket_failed",
                    severity="warning",
                    message=f"support {order}: socket boolean failed ({exc}); column left flat",
                    index=index,
                )
            )
            logger.warning("Support %d: socket boolean failed: %s", order, exc)
    return pieces, issues


def wall_base_height(
    position: int,
    floor: float,
    plate_top: float,
    steps: int,
    exponent: float,
) -> float:
    """Staircase over ``position mod steps`` bent by a power curve."""
    if floor <= plate_top or steps <= 0:
        return plate_top
    fraction = (position % steps) / float(steps)
    return plate_top + (floor - plate_top) * fraction ** exponent


def build_wall(
    a: ScaledPoint,
    b: ScaledPoint,
    base: float,
    thickness: float,
) -> Optional[trimesh.Trimesh]:
    """Slab between the ground projections of ``a`` and ``b``, topped at the tube axis."""
    run = np.array([b.x - a.x, b.y - a.y], dtype=float)
    length = float(np.linalg.norm(run))
    if length < 1e-6:
        return None
    normal = np.array([-run[1], run[0]]) / length * (thickness / 2.0)
    corners = []
    for point in (a, b):
        for side in (1.0, -1.0):
            x = point.x + side * normal[0]
            y = point.y + side * normal[1]
            corners.append((x, y, base))
            corners.append((x, y, max(point.z, base + 1e-3)))
    return trimesh.convex.convex_hull(np.asarray(corners, dtype=float))


def wall_supports(
    points: Sequence[ScaledPoint],
    config: SculptureConfig,
) -> Tuple[List[trimesh.Trimesh], List[BuildIssue]]:
    walls: List[trimesh.Trimesh] = []
    issues: List[BuildIssue] = []
    plate_top = config.board.thickness
    for k in range(len(points) - 1):
        a, b = points[k], points[k + 1]
        floor = min(a.z, b.z) - max(a.radius, b.radius)
        base = wall_base_height(k, floor, plate_top, config.wall_steps, config.wall_exponent)
        wall = build_wall(a, b, base, config.board.thickness)
        if wall is None:
            issues.append(
                BuildIssue(
                    code="zero_length_wall",
                    severity="warning",
                    message=f"wall {k}: samples {k} and {k + 1} share a ground position",
                    index=k,
                )
            )
            logger.warning("Wall %d skipped: zero ground length", k)
            continue
        walls.append(wall)
    return walls, issues


def build_supports(
    points: Sequence[ScaledPoint],
    support_set: SupportIndexSet,
    data_part: trimesh.Trimesh,
    config: SculptureConfig,
    strategy: Optional[SupportStrategy] = None,
) -> SupportBuild:
    """Support scaffolding for ``strategy`` with the data part carved out."""
    strategy = strategy or config.support_strategy
    if strategy == SupportStrategy.WALLS:
        elements, issues = wall_supports(points, config)
    else:
        elements, issues = column_supports(points, support_set, config)

    if not elements:
        logger.info("No support elements generated (strategy=%s)", strategy.value)
        return SupportBuild(mesh=None, issues=issues, element_count=0)

    scaffold = trimesh.boolean.union(elements) if len(elements) > 1 else elements[0]
    scaffold = trimesh.boolean.difference([scaffold, data_part])
    logger.info(
        "Supports: strategy=%s elements=%d faces=%d",
        strategy.value, len(elements), len(scaffold.faces),
    )
    return SupportBuild(mesh=scaffold, issues=issues, element_count=len(elements))
