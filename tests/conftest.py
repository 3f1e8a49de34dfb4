"""
Shared test fixtures for the data sculpture pipeline tests.
"""
import sys
import warnings
from pathlib import Path

# Suppress trimesh internal RuntimeWarning for degenerate cross-sections
# (divide-by-zero in center_mass when slicing yields zero-volume geometry).
warnings.filterwarnings(
    "ignore",
    message="invalid value encountered in divide",
    category=RuntimeWarning,
    module=r"trimesh\.triangles",
)

import numpy as np
import pytest
import trimesh

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from data_sculpture.contracts import BoardSpec, ScaledPoint, SculptureConfig


@pytest.fixture
def fast_config():
    """Default config with coarse meshes so boolean-heavy tests stay quick."""
    return SculptureConfig(
        subdivisions=1,
        sphere_subdivisions=1,
        cylinder_sections=12,
    )


@pytest.fixture
def wave_samples():
    """Six 4-field samples that climb and wiggle across the board."""
    return [
        (0.0, 0.0, 0.0, 1.0),
        (1.0, 2.0, 1.0, 2.0),
        (2.0, 1.0, 3.0, 1.0),
        (3.0, 3.0, 2.0, 3.0),
        (4.0, 2.0, 4.0, 1.0),
        (5.0, 4.0, 3.0, 2.0),
    ]


@pytest.fixture
def straight_points():
    """Three samples on a straight, level line along X at y=50, z=40."""
    return [
        ScaledPoint(x=20.0, y=50.0, z=40.0, radius=3.0),
        ScaledPoint(x=50.0, y=50.0, z=40.0, radius=3.0),
        ScaledPoint(x=80.0, y=50.0, z=40.0, radius=3.0),
    ]


@pytest.fixture
def straight_path(straight_points):
    return np.asarray([p.as_row() for p in straight_points], dtype=float)


@pytest.fixture
def tube_mesh():
    """Radius-3 cylinder along X through (50, 50, 40), 100mm long."""
    mesh = trimesh.creation.cylinder(radius=3.0, height=100.0, sections=32)
    mesh.apply_transform(trimesh.transformations.rotation_matrix(np.pi / 2, [0, 1, 0]))
    mesh.apply_translation([50.0, 50.0, 40.0])
    return mesh


@pytest.fixture
def flat_config():
    """Config matching ``straight_points``: no smoothing, coarse meshes."""
    return SculptureConfig(
        subdivisions=0,
        sphere_subdivisions=1,
        cylinder_sections=12,
        board=BoardSpec(thickness=3.0),
    )


@pytest.fixture
def box_mesh():
    """A simple 10x10x10mm box mesh sitting on z=0."""
    mesh = trimesh.creation.box(extents=[10, 10, 10])
    mesh.apply_translation([0, 0, 5])
    return mesh
