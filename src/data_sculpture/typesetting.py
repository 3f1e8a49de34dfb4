"""Text to 2D outlines (mm) via matplotlib's TextPath."""

from __future__ import annotations

from typing import Optional

from matplotlib.font_manager import FontProperties
from matplotlib.textpath import TextPath
from shapely import affinity
from shapely.geometry import MultiPolygon, Polygon

MM_PER_PT = 25.4 / 72.0
HALIGN = ("left", "center", "right")


def render_text(
    text: str,
    size: float,
    font: Optional[str] = None,
    halign: str = "left",
):
    """Outline of ``text`` with cap height roughly ``size`` mm.

    The baseline sits on y = 0; ``halign`` places x = 0 at the left edge,
    centre or right edge of the rendered text.
    """
    if halign not in HALIGN:
        raise ValueError(f"halign must be one of {HALIGN}, got {halign!r}")
    if not text.strip() or size <= 0:
        return MultiPolygon([])

    prop = FontProperties(fname=font) if font else FontProperties(family="DejaVu Sans")
    path = TextPath((0, 0), text, size=size / MM_PER_PT, prop=prop, usetex=False)

    # Glyph loops are filled even-odd: xor-ing them carves the counters.
    outline = Polygon()
    for loop in path.to_polygons():
        if len(loop) < 3:
            continue
        ring = Polygon([(float(x), float(y)) for x, y in loop]).buffer(0)
        if ring.is_empty:
            continue
        outline = outline.symmetric_difference(ring)
    if outline.is_empty:
        return MultiPolygon([])

    outline = affinity.scale(outline, xfact=MM_PER_PT, yfact=MM_PER_PT, origin=(0, 0))
    min_x, _, max_x, _ = outline.bounds
    if halign == "center":
        shift = -(min_x + max_x) / 2.0
    elif halign == "right":
        shift = -max_x
    else:
        shift = -min_x
    return affinity.translate(outline, xoff=shift)
