"""
File writers for pipeline outputs.

  - STL for 3D modes (trimesh)
  - DXF for laser patterns (ezdxf), layers:
      CUT (red, ACI 1): through-cut outlines, slots, pieces
      ENGRAVE (blue, ACI 5): ticks, labels, piece numbers
  - SVG for the same patterns (svgwrite), red hairline cuts, blue fills

Units: millimeters.
"""
import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import ezdxf
import svgwrite

from data_sculpture.profiles import polygons_of

logger = logging.getLogger(__name__)


@dataclass
class DXFExportConfig:
    """Configuration for DXF export."""
    cut_layer: str = "CUT"
    engrave_layer: str = "ENGRAVE"
    cut_color: int = 1       # ACI red
    engrave_color: int = 5   # ACI blue


def mesh_to_stl(mesh, filepath: str) -> str:
    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    mesh.export(filepath)
    logger.info("Exported STL: %s", filepath)
    return filepath


def shapes_to_dxf(
    cut: Sequence[object],
    engrave: Sequence[object],
    filepath: str,
    config: Optional[DXFExportConfig] = None,
) -> str:
    """Trace base outlines, slots and pieces on CUT, ticks and numbers on ENGRAVE.

    Every ring (holes included) becomes one closed LWPOLYLINE so the laser
    software sees glyph counters and notches as separate paths.
    """
    if config is None:
        config = DXFExportConfig()

    doc = ezdxf.new("R2010")
    doc.units = ezdxf.units.MM
    msp = doc.modelspace()
    doc.layers.add(config.cut_layer, color=config.cut_color)
    doc.layers.add(config.engrave_layer, color=config.engrave_color)

    for geom in cut:
        _add_geometry_to_dxf(msp, geom, config.cut_layer)
    for geom in engrave:
        _add_geometry_to_dxf(msp, geom, config.engrave_layer)

    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    doc.saveas(filepath)
    logger.info("Exported DXF: %s", filepath)
    return filepath


def shapes_to_svg(
    cut: Sequence[object],
    engrave: Sequence[object],
    filepath: str,
    margin: float = 5.0,
) -> str:
    """Write cut and engrave geometry to an SVG sized to the drawing in mm."""
    polygons = [p for g in list(cut) + list(engrave) for p in polygons_of(g)]
    if polygons:
        min_x = min(p.bounds[0] for p in polygons)
        min_y = min(p.bounds[1] for p in polygons)
        max_x = max(p.bounds[2] for p in polygons)
        max_y = max(p.bounds[3] for p in polygons)
    else:
        min_x = min_y = max_x = max_y = 0.0
    width = max_x - min_x + 2 * margin
    height = max_y - min_y + 2 * margin

    dwg = svgwrite.Drawing(
        filepath,
        size=(f"{width}mm", f"{height}mm"),
        viewBox=f"0 0 {width} {height}",
    )
    dwg.defs.add(dwg.style("""
        .cut { stroke: #ff0000; stroke-width: 0.1; fill: none; }
        .engrave { stroke: none; fill: #0000ff; fill-rule: evenodd; }
    """))

    def to_svg(x: float, y: float) -> Tuple[float, float]:
        # SVG y grows downward.
        return (round(x - min_x + margin, 4), round(max_y - y + margin, 4))

    for css_class, shapes in (("cut", cut), ("engrave", engrave)):
        for geom in shapes:
            for polygon in polygons_of(geom):
                d = " ".join(_ring_path(ring.coords, to_svg) for ring in _rings(polygon))
                dwg.add(dwg.path(d=d, class_=css_class))

    os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
    dwg.save()
    logger.info("Exported SVG: %s", filepath)
    return filepath


# ─── Internal helpers ────────────────────────────────────────────────────────

def _rings(polygon) -> List[object]:
    return [polygon.exterior] + list(polygon.interiors)


def _ring_path(coords, to_svg) -> str:
    points = [to_svg(x, y) for x, y in list(coords)[:-1]]
    if len(points) < 3:
        return ""
    head = f"M {points[0][0]} {points[0][1]}"
    body = " ".join(f"L {x} {y}" for x, y in points[1:])
    return f"{head} {body} Z"


def _add_geometry_to_dxf(msp, geom, layer: str) -> None:
    """Add every ring of a Shapely geometry as a closed LWPolyline."""
    for polygon in polygons_of(geom):
        for ring in _rings(polygon):
            coords = list(ring.coords)
            if len(coords) >= 3:
                msp.add_lwpolyline(
                    coords,
                    close=True,
                    dxfattribs={"layer": layer},
                )
