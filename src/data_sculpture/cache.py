"""Content-addressed cache for the exported data-part solid.

The solid is expensive to rebuild, so support and layout passes load the
STL written by the solid pass. The file name carries a sha256 of the
samples and every config field that shapes the solid, so a stale artifact
is detected instead of silently reused.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Sequence

import trimesh

from data_sculpture.contracts import Sample, SculptureConfig, StaleArtifactError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "data_sculpture.solid_cache.v1"

# Config fields that change the data-part geometry.
SOLID_FIELDS = (
    "mapping",
    "x_range",
    "y_range",
    "z_range",
    "board",
    "area_scale",
    "min_radius",
    "marker_scale",
    "label_hole_radius",
    "subdivisions",
    "closed_path",
    "sphere_subdivisions",
    "cylinder_sections",
)


def _canonical_json(payload: Dict[str, object]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def solid_cache_payload(samples: Sequence[Sample], config: SculptureConfig) -> Dict[str, object]:
    settings = asdict(config)
    return {
        "schema_version": SCHEMA_VERSION,
        "samples": [[float(v) for v in sample] for sample in samples],
        "config": {name: settings[name] for name in SOLID_FIELDS},
    }


def solid_cache_key(samples: Sequence[Sample], config: SculptureConfig) -> str:
    return sha256_text(_canonical_json(solid_cache_payload(samples, config)))


def artifact_paths(cache_dir: Path, key: str):
    cache_dir = Path(cache_dir)
    stem = f"data_part_{key[:16]}"
    return cache_dir / f"{stem}.stl", cache_dir / f"{stem}.json"


def write_cached_solid(mesh: trimesh.Trimesh, cache_dir: Path, key: str) -> Path:
    stl_path, manifest_path = artifact_paths(cache_dir, key)
    stl_path.parent.mkdir(parents=True, exist_ok=True)
    mesh.export(stl_path)
    manifest = {
        "schema_version": SCHEMA_VERSION,
        "key": key,
        "stl": stl_path.name,
        "faces": int(len(mesh.faces)),
        "bounds_mm": [[float(v) for v in row] for row in mesh.bounds],
    }
    manifest_path.write_text(json.dumps(manifest, indent=2, sort_keys=True), encoding="utf-8")
    logger.info("Cached data part %s (%d faces)", stl_path, len(mesh.faces))
    return stl_path


def has_cached_solid(cache_dir: Path, key: str) -> bool:
    stl_path, manifest_path = artifact_paths(cache_dir, key)
    return stl_path.exists() and manifest_path.exists()


def load_cached_solid(cache_dir: Path, key: str) -> trimesh.Trimesh:
    """Load the solid cached under ``key``.

    Raises:
        StaleArtifactError: if nothing was cached for these inputs.
    """
    stl_path, manifest_path = artifact_paths(cache_dir, key)
    if not stl_path.exists() or not manifest_path.exists():
        raise StaleArtifactError(
            f"No cached data part for key {key[:16]} in {cache_dir}; run the solid pass first"
        )
    manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    if manifest.get("key") != key or manifest.get("schema_version") != SCHEMA_VERSION:
        raise StaleArtifactError(f"Cached data part manifest {manifest_path} does not match key")
    mesh = trimesh.load(stl_path, force="mesh")
    if not isinstance(mesh, trimesh.Trimesh) or mesh.is_empty:
        raise StaleArtifactError(f"Cached data part {stl_path} holds no mesh")
    logger.debug("Loaded cached data part %s", stl_path)
    return mesh
