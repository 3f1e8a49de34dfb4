"""Data sculpture pipeline: samples + config -> one output mode.

Two phases share a content-addressed cache. The SOLID mode builds the data
part and caches it; every other mode that needs the part (supports, cradle
pieces) loads it by key and fails loudly when it is stale.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import numpy as np
import trimesh

from data_sculpture.base import (
    alignment_frame,
    axis_layouts,
    base_solid,
    engraving,
    plate_outline,
)
from data_sculpture.cache import (
    has_cached_solid,
    load_cached_solid,
    solid_cache_key,
    write_cached_solid,
)
from data_sculpture.contracts import (
    AxisRange,
    BuildIssue,
    ConfigurationError,
    OutputMode,
    Sample,
    ScaledPoint,
    SculptureConfig,
    SculptureResult,
    SupportIndexSet,
    SupportStrategy,
    status_from_issues,
)
from data_sculpture.coordinates import scale_samples
from data_sculpture.exporters import mesh_to_stl, shapes_to_dxf, shapes_to_svg
from data_sculpture.layout import cradle_pieces, cradle_slots_2d
from data_sculpture.samples import normalize_samples, validate_mapping
from data_sculpture.smoothing import smooth
from data_sculpture.solids import Smoother, build_data_part, smoothed_path
from data_sculpture.support_selection import select_support_indices
from data_sculpture.supports import build_supports

logger = logging.getLogger(__name__)


@dataclass
class _Context:
    samples: Tuple[Sample, ...]
    config: SculptureConfig
    ranges: Tuple[AxisRange, AxisRange, AxisRange]
    points: List[ScaledPoint]
    path: np.ndarray
    support_set: SupportIndexSet
    cache_dir: Path
    cache_key: str
    smoother: Smoother
    rebuild_solid: bool

    def data_part(self, issues: List[BuildIssue]) -> trimesh.Trimesh:
        if self.rebuild_solid and not has_cached_solid(self.cache_dir, self.cache_key):
            logger.info("Cached data part missing; rebuilding it")
            built = build_data_part(self.points, self.config, self.smoother)
            issues.extend(built.issues)
            write_cached_solid(built.mesh, self.cache_dir, self.cache_key)
            return built.mesh
        return load_cached_solid(self.cache_dir, self.cache_key)


def resolve_output_mode(
    *,
    data_part: bool = False,
    base: bool = False,
    engrave: bool = False,
    cut: bool = False,
    supports: bool = False,
) -> OutputMode:
    """Map the classic boolean switches onto a single output mode.

    ``engrave`` and ``cut`` together yield the alignment frame only.
    """
    if data_part and (base or supports or engrave or cut):
        raise ConfigurationError("The data part is built on its own; drop the base/support switches")
    if supports and (base or engrave or cut):
        raise ConfigurationError("Supports are built on their own; drop the base switches")
    if data_part:
        return OutputMode.SOLID
    if supports:
        return OutputMode.SUPPORTS
    if (engrave or cut) and not base:
        raise ConfigurationError("--engrave/--cut select a base pattern and need --base")
    if not base:
        raise ConfigurationError("Nothing to build: choose the data part, supports or the base")
    if engrave and cut:
        return OutputMode.BASE_FRAME_2D
    if engrave:
        return OutputMode.BASE_ENGRAVE_2D
    if cut:
        return OutputMode.BASE_CUT_2D
    return OutputMode.BASE_3D


def _build_solid(ctx: _Context, result: SculptureResult) -> None:
    built = build_data_part(ctx.points, ctx.config, ctx.smoother)
    result.issues.extend(built.issues)
    write_cached_solid(built.mesh, ctx.cache_dir, ctx.cache_key)
    result.solid = built.mesh
    result.metrics["path_points"] = float(len(built.path))


def _build_supports(ctx: _Context, result: SculptureResult) -> None:
    if ctx.config.support_strategy is SupportStrategy.COLUMNS and not len(ctx.support_set):
        logger.info("No samples need support; skipping the column pass")
        result.metrics["support_elements"] = 0.0
        return
    part = ctx.data_part(result.issues)
    built = build_supports(ctx.points, ctx.support_set, part, ctx.config)
    result.issues.extend(built.issues)
    result.solid = built.mesh
    result.metrics["support_elements"] = float(built.element_count)


def _build_base_3d(ctx: _Context, result: SculptureResult) -> None:
    layouts, issues = axis_layouts(ctx.ranges, ctx.config)
    result.issues.extend(issues)
    result.solid = base_solid(layouts, ctx.config)


def _piece_row_origin(config: SculptureConfig) -> Tuple[float, float]:
    min_x, _, _, max_y = plate_outline(config).bounds
    return (min_x, max_y + config.arrangement_distance)


def _cradle_layout(ctx: _Context, result: SculptureResult):
    if not len(ctx.support_set):
        return None
    part = ctx.data_part(result.issues)
    layout = cradle_pieces(
        part, ctx.points, ctx.path, ctx.support_set, ctx.config,
        row_origin=_piece_row_origin(ctx.config),
    )
    result.issues.extend(layout.issues)
    return layout


def _build_base_engrave(ctx: _Context, result: SculptureResult) -> None:
    layouts, issues = axis_layouts(ctx.ranges, ctx.config)
    result.issues.extend(issues)
    result.engrave.extend(engraving(layouts))
    result.engrave.extend(
        cradle_slots_2d(ctx.points, ctx.path, ctx.support_set, ctx.config, pattern="engrave")
    )
    layout = _cradle_layout(ctx, result)
    if layout is not None:
        result.engrave.extend(layout.labels(ctx.config.label_size))


def _build_base_cut(ctx: _Context, result: SculptureResult) -> None:
    result.cut.append(plate_outline(ctx.config))
    result.cut.extend(
        cradle_slots_2d(ctx.points, ctx.path, ctx.support_set, ctx.config, pattern="cut")
    )
    layout = _cradle_layout(ctx, result)
    if layout is not None:
        result.pieces.extend(layout.pieces)
        result.cut.extend(layout.outlines())


def _build_base_frame(ctx: _Context, result: SculptureResult) -> None:
    result.cut.append(alignment_frame(ctx.config))


_BUILDERS: Dict[OutputMode, Callable[[_Context, SculptureResult], None]] = {
    OutputMode.SOLID: _build_solid,
    OutputMode.SUPPORTS: _build_supports,
    OutputMode.BASE_3D: _build_base_3d,
    OutputMode.BASE_ENGRAVE_2D: _build_base_engrave,
    OutputMode.BASE_CUT_2D: _build_base_cut,
    OutputMode.BASE_FRAME_2D: _build_base_frame,
}


def run_pipeline(
    samples: Sequence[Sequence[float]],
    config: SculptureConfig,
    mode: OutputMode,
    cache_dir: Path,
    smoother: Smoother = smooth,
    rebuild_solid: bool = False,
) -> SculptureResult:
    """Build the geometry for ``mode``.

    Raises:
        ConfigurationError: for malformed samples or field mapping.
        DegenerateRangeError: if an axis range is empty.
        StaleArtifactError: if the mode needs a cached data part that was
            not built for these inputs (and ``rebuild_solid`` is off).
    """
    rows = normalize_samples(samples)
    validate_mapping(rows, config.mapping)
    ranges, points = scale_samples(rows, config)
    positions = [p.position for p in points]
    support_set = select_support_indices(
        positions,
        config.support_tolerance,
        config.support_step,
        config.support_exclude,
        config.neighbor_window,
    )
    ctx = _Context(
        samples=rows,
        config=config,
        ranges=ranges,
        points=points,
        path=smoothed_path(points, config, smoother),
        support_set=support_set,
        cache_dir=Path(cache_dir),
        cache_key=solid_cache_key(rows, config),
        smoother=smoother,
        rebuild_solid=rebuild_solid,
    )

    result = SculptureResult(
        mode=mode,
        status="ok",
        cache_key=ctx.cache_key,
        support_set=support_set,
    )
    logger.info("Building %s for %d samples (cache key %s)", mode.value, len(rows), ctx.cache_key[:16])
    _BUILDERS[mode](ctx, result)

    result.status = status_from_issues(result.issues)
    result.metrics.update({
        "samples": float(len(rows)),
        "supports": float(len(support_set)),
        "pieces": float(len(result.pieces)),
        "cut_shapes": float(len(result.cut)),
        "engrave_shapes": float(len(result.engrave)),
        "issues": float(len(result.issues)),
    })
    if result.solid is not None:
        result.metrics["faces"] = float(len(result.solid.faces))
    return result


def export_result(result: SculptureResult, output_dir: Path, name: str) -> List[Path]:
    """Write STL (3D modes) or DXF + SVG (2D modes) for a result."""
    output_dir = Path(output_dir)
    stem = f"{name}_{result.mode.value}"
    paths: List[Path] = []
    if result.solid is not None:
        paths.append(Path(mesh_to_stl(result.solid, os.path.join(output_dir, f"{stem}.stl"))))
    if result.mode.is_2d:
        paths.append(Path(shapes_to_dxf(result.cut, result.engrave, os.path.join(output_dir, f"{stem}.dxf"))))
        paths.append(Path(shapes_to_svg(result.cut, result.engrave, os.path.join(output_dir, f"{stem}.svg"))))
    if not paths:
        logger.warning("Nothing to export for %s", result.mode.value)
    return paths
