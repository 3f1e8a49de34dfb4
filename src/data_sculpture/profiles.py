"""
2D profile helpers built on Shapely.

Fillet rounding by double offset, and flattening a thin slab of a trimesh
solid into a polygon (the outline the slab casts on its own plane).
"""
import math
from typing import List, Sequence

import numpy as np
import trimesh
from shapely import affinity
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon, box
from shapely.ops import unary_union
from trimesh.transformations import rotation_matrix, translation_matrix

ROUND_RESOLUTION = 16


def fillet(polygon, radius: float):
    """Round corners by growing then shrinking by ``radius``."""
    if radius <= 0 or polygon.is_empty:
        return polygon
    grown = polygon.buffer(radius, quad_segs=ROUND_RESOLUTION, join_style="round")
    return grown.buffer(-radius, quad_segs=ROUND_RESOLUTION, join_style="round")


def smooth_outline(polygon, coarse_radius: float, fine_radius: float):
    """Coarse fillet pass followed by a fine one."""
    return fillet(fillet(polygon, coarse_radius), fine_radius)


def polygons_of(geom) -> List[Polygon]:
    """Flatten any Shapely result into its non-empty polygons."""
    if geom is None or geom.is_empty:
        return []
    if isinstance(geom, Polygon):
        return [geom]
    if isinstance(geom, (MultiPolygon, GeometryCollection)):
        out: List[Polygon] = []
        for part in geom.geoms:
            out.extend(polygons_of(part))
        return out
    return []


def project_mesh_xz(mesh: trimesh.Trimesh):
    """Union of every triangle of ``mesh`` dropped onto the XZ plane."""
    if mesh is None or mesh.is_empty:
        return Polygon()
    triangles = mesh.vertices[mesh.faces][:, :, [0, 2]]
    polygons = []
    for tri in triangles:
        p = Polygon([(float(u), float(v)) for u, v in tri])
        if p.is_valid and p.area > 1e-9:
            polygons.append(p)
    if not polygons:
        return Polygon()
    return unary_union(polygons)


def section_profile(
    solid: trimesh.Trimesh,
    origin: Sequence[float],
    azimuth: float,
    thickness: float,
    window: float,
):
    """Outline of a ``thickness`` slab of ``solid`` through ``origin``.

    The solid is moved so ``origin`` is at (0, 0, 0) and rotated about Z by
    ``-azimuth``, so the direction with that azimuth becomes +X. The slab is
    the plane |y| <= thickness / 2 clipped to a ``window`` sized square
    around the origin; the result is in that plane's (x, z) coordinates.
    """
    transform = rotation_matrix(-azimuth, [0.0, 0.0, 1.0]) @ translation_matrix(
        -np.asarray(origin, dtype=float)
    )
    moved = solid.copy()
    moved.apply_transform(transform)

    slab = trimesh.creation.box(extents=[2.0 * window, thickness, 2.0 * window])
    section = trimesh.boolean.intersection([moved, slab])
    shadow = project_mesh_xz(section)
    return shadow.intersection(box(-window, -window, window, window))


def scale_about_origin(geom, factor: float):
    return affinity.scale(geom, xfact=factor, yfact=factor, origin=(0.0, 0.0))


def rectangle(cx: float, cy: float, width: float, height: float, angle: float = 0.0) -> Polygon:
    """Axis-aligned rectangle centred on (cx, cy), rotated by ``angle`` radians."""
    rect = box(cx - width / 2.0, cy - height / 2.0, cx + width / 2.0, cy + height / 2.0)
    if angle:
        rect = affinity.rotate(rect, math.degrees(angle), origin=(cx, cy))
    return rect
