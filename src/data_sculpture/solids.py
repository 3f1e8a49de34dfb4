"""
Data-part solid construction.

The part is a tube of tapered capsule segments along the smoothed path, a
marker bead on every original sample, and optional vertical label holes.
Built with trimesh; booleans go through trimesh's manifold backend.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import trimesh
from trimesh.transformations import rotation_matrix, translation_matrix

from data_sculpture.contracts import (
    BuildIssue,
    DegenerateOrientationError,
    ScaledPoint,
    SculptureConfig,
)
from data_sculpture.smoothing import smooth, smoothed_index

logger = logging.getLogger(__name__)

DIRECTION_EPS = 1e-9

Smoother = Callable[[Sequence[Sequence[float]], int, bool], np.ndarray]


@dataclass
class SolidBuild:
    """Data-part solid plus the entities that had to fall back."""

    mesh: trimesh.Trimesh
    path: np.ndarray  # (M, 4) smoothed x, y, z, radius
    issues: List[BuildIssue] = field(default_factory=list)


def orientation_angles(direction: Sequence[float]) -> Tuple[float, float]:
    """Polar and azimuth angles (radians) of a 3D direction.

    Raises:
        DegenerateOrientationError: if the direction has zero length.
    """
    x, y, z = (float(v) for v in direction)
    length = math.sqrt(x * x + y * y + z * z)
    if length < DIRECTION_EPS:
        raise DegenerateOrientationError(
            f"Direction ({x:g}, {y:g}, {z:g}) has no usable length"
        )
    polar = math.acos(max(-1.0, min(1.0, z / length)))
    azimuth = math.atan2(y, x)
    return polar, azimuth


def orientation_matrix(polar: float, azimuth: float) -> np.ndarray:
    """4x4 transform that turns +Z into the (polar, azimuth) direction."""
    return rotation_matrix(azimuth, [0.0, 0.0, 1.0]) @ rotation_matrix(polar, [0.0, 1.0, 0.0])


def smoothed_path(
    points: Sequence[ScaledPoint],
    config: SculptureConfig,
    smoother: Smoother = smooth,
) -> np.ndarray:
    rows = np.asarray([p.as_row() for p in points], dtype=float)
    path = np.asarray(smoother(rows, config.subdivisions, config.closed_path), dtype=float)
    path[:, 3] = np.maximum(path[:, 3], config.min_radius)
    return path


def marker_direction(
    index: int,
    point: ScaledPoint,
    path: np.ndarray,
    subdivisions: int,
    closed: bool = False,
) -> np.ndarray:
    """Direction toward the next smoothed point.

    A closed path wraps to its first point; an open one reverses at the
    last sample.
    """
    s = smoothed_index(index, subdivisions)
    here = np.asarray(point.position, dtype=float)
    if s + 1 < len(path):
        return path[s + 1, :3] - here
    if closed and len(path) > 2:
        return path[0, :3] - here
    if s >= 1:
        return here - path[s - 1, :3]
    return np.zeros(3)


def build_path_solid(path: np.ndarray, config: SculptureConfig) -> trimesh.Trimesh:
    unit = trimesh.creation.icosphere(subdivisions=config.sphere_subdivisions).vertices
    segments = []
    count = len(path)
    pair_count = count if config.closed_path and count > 2 else count - 1
    for k in range(pair_count):
        a = path[k]
        b = path[(k + 1) % count]
        cloud = np.vstack([unit * a[3] + a[:3], unit * b[3] + b[:3]])
        segments.append(trimesh.convex.convex_hull(cloud))
    if not segments:
        # Single sample: the tube is just its sphere.
        only = path[0]
        return trimesh.convex.convex_hull(unit * only[3] + only[:3])
    if len(segments) == 1:
        return segments[0]
    return trimesh.boolean.union(segments)


def build_marker(
    point: ScaledPoint,
    transform: np.ndarray,
    config: SculptureConfig,
) -> trimesh.Trimesh:
    """Tapered bead: base ring at the sample, rounded tip one radius out."""
    base_radius = max(point.radius, config.min_radius) * config.marker_scale
    tip_radius = base_radius / 2.0
    angles = np.linspace(0.0, 2.0 * math.pi, config.cylinder_sections, endpoint=False)
    ring = np.column_stack(
        [base_radius * np.cos(angles), base_radius * np.sin(angles), np.zeros_like(angles)]
    )
    tip = trimesh.creation.icosphere(
        subdivisions=config.sphere_subdivisions, radius=tip_radius
    ).vertices + [0.0, 0.0, base_radius]
    marker = trimesh.convex.convex_hull(np.vstack([ring, tip]))
    marker.apply_transform(translation_matrix(point.position) @ transform)
    return marker


def build_markers(
    points: Sequence[ScaledPoint],
    path: np.ndarray,
    config: SculptureConfig,
) -> Tuple[List[trimesh.Trimesh], List[BuildIssue]]:
    markers: List[trimesh.Trimesh] = []
    issues: List[BuildIssue] = []
    previous: Optional[np.ndarray] = None
    for index, point in enumerate(points):
        direction = marker_direction(index, point, path, config.subdivisions, config.closed_path)
        try:
            transform = orientation_matrix(*orientation_angles(direction))
        except DegenerateOrientationError as exc:
            transform = previous if previous is not None else np.eye(4)
            fallback = "previous marker" if previous is not None else "vertical"
            issues.append(
                BuildIssue(
                    code="degenerate_orientation",
                    severity="warning",
                    message=f"marker {index}: {exc}; using {fallback} orientation",
                    index=index,
                )
            )
            logger.warning("Marker %d: degenerate orientation, using %s", index, fallback)
        markers.append(build_marker(point, transform, config))
        previous = transform
    return markers, issues


def build_label_holes(points: Sequence[ScaledPoint], config: SculptureConfig) -> List[trimesh.Trimesh]:
    if config.label_hole_radius <= 0:
        return []
    height = config.board.height * 2.0
    holes = []
    for point in points:
        hole = trimesh.creation.cylinder(
            radius=config.label_hole_radius,
            height=height,
            sections=config.cylinder_sections,
        )
        hole.apply_translation([point.x, point.y, config.board.height / 2.0])
        holes.append(hole)
    return holes


def build_data_part(
    points: Sequence[ScaledPoint],
    config: SculptureConfig,
    smoother: Smoother = smooth,
) -> SolidBuild:
    """Union of path tube and markers, minus label holes."""
    if not points:
        raise ValueError("Cannot build a data part without samples")

    path = smoothed_path(points, config, smoother)
    tube = build_path_solid(path, config)
    markers, issues = build_markers(points, path, config)
    solid = trimesh.boolean.union([tube] + markers)

    holes = build_label_holes(points, config)
    if holes:
        solid = trimesh.boolean.difference([solid] + holes)

    logger.info(
        "Data part: %d samples, %d path points, %d faces, watertight=%s",
        len(points), len(path), len(solid.faces), solid.is_watertight,
    )
    return SolidBuild(mesh=solid, path=path, issues=issues)
