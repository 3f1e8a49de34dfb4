"""Contracts for the data sculpture pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple, Union

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]
Sample = Tuple[float, ...]
RangeBound = Union[float, str]

AUTO = "auto"


class ConfigurationError(ValueError):
    """Configuration or sample data violates the load-time contract."""


class DegenerateRangeError(ValueError):
    """An axis range has max <= min and cannot be scaled."""

    def __init__(self, axis: str, minimum: float, maximum: float):
        super().__init__(
            f"Degenerate {axis} range: max ({maximum:g}) must exceed min ({minimum:g})"
        )
        self.axis = axis
        self.minimum = minimum
        self.maximum = maximum


class DegenerateOrientationError(ValueError):
    """A direction vector has (near) zero length."""


class StaleArtifactError(RuntimeError):
    """The cached data-part solid is missing or was built from other inputs."""


class OutputMode(Enum):
    """What a single pipeline run produces."""

    SOLID = "solid"
    SUPPORTS = "supports"
    BASE_3D = "base_3d"
    BASE_ENGRAVE_2D = "base_engrave_2d"
    BASE_CUT_2D = "base_cut_2d"
    BASE_FRAME_2D = "base_frame_2d"

    @property
    def is_2d(self) -> bool:
        return self in (
            OutputMode.BASE_ENGRAVE_2D,
            OutputMode.BASE_CUT_2D,
            OutputMode.BASE_FRAME_2D,
        )


class SupportStrategy(Enum):
    COLUMNS = "columns"
    WALLS = "walls"


@dataclass(frozen=True)
class AxisMapping:
    """Which sample fields feed X, Y, Z and the marker magnitude."""

    x: int = 0
    y: int = 1
    z: int = 2
    magnitude: int = 3

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.z, self.magnitude)


@dataclass(frozen=True)
class RangeSpec:
    """Configured bounds of one axis; each bound is a number or ``"auto"``."""

    minimum: RangeBound = AUTO
    maximum: RangeBound = AUTO

    def __post_init__(self):
        for name in ("minimum", "maximum"):
            bound = getattr(self, name)
            if isinstance(bound, str) and bound == AUTO:
                continue
            if isinstance(bound, bool) or not isinstance(bound, (int, float)):
                raise ConfigurationError(
                    f"Range {name} must be a number or {AUTO!r}, got {bound!r}"
                )


@dataclass(frozen=True)
class AxisRange:
    minimum: float
    maximum: float

    @property
    def span(self) -> float:
        return self.maximum - self.minimum


@dataclass(frozen=True)
class BoardSpec:
    """Physical board the sculpture stands on, all values in mm."""

    width: float = 160.0
    depth: float = 160.0
    height: float = 120.0
    padding_left: float = 10.0
    padding_right: float = 10.0
    padding_front: float = 10.0
    padding_back: float = 10.0
    padding_bottom: float = 10.0
    padding_top: float = 10.0
    axis_strip_height: float = 4.0
    axis_strip_width: float = 18.0
    thickness: float = 3.0

    def dimension(self, axis: int) -> float:
        return (self.width, self.depth, self.height)[axis]

    def padding(self, axis: int) -> Tuple[float, float]:
        return (
            (self.padding_left, self.padding_right),
            (self.padding_front, self.padding_back),
            (self.padding_bottom, self.padding_top),
        )[axis]


@dataclass(frozen=True)
class SculptureConfig:
    """Complete, immutable parameter set for every pipeline component."""

    mapping: AxisMapping = field(default_factory=AxisMapping)
    x_range: RangeSpec = field(default_factory=RangeSpec)
    y_range: RangeSpec = field(default_factory=RangeSpec)
    z_range: RangeSpec = field(default_factory=RangeSpec)
    board: BoardSpec = field(default_factory=BoardSpec)
    axis_titles: Tuple[str, str, str] = ("X", "Y", "Z")

    # Data part
    area_scale: float = 20.0
    min_radius: float = 0.6
    marker_scale: float = 1.3
    label_hole_radius: float = 0.0
    subdivisions: int = 3
    closed_path: bool = False
    sphere_subdivisions: int = 2
    cylinder_sections: int = 24

    # Support selection
    support_tolerance: float = 4.0
    support_step: int = 1
    support_exclude: Tuple[int, ...] = ()
    neighbor_window: int = 1
    support_strategy: SupportStrategy = SupportStrategy.COLUMNS

    # 3D supports
    socket_scale: float = 1.4
    wall_steps: int = 4
    wall_exponent: float = 1.5

    # 2D cradle pieces
    arrangement_distance: float = 40.0
    clearance_tolerance: float = 0.2
    fillet_radius_coarse: float = 2.0
    fillet_radius_fine: float = 0.5
    leg_spread: float = 12.0
    tab_length: float = 8.0
    label_size: float = 3.0

    # Base
    tick_length: float = 3.0
    tick_width: float = 0.4
    frame_width: float = 2.0

    def axis_range_spec(self, axis: int) -> RangeSpec:
        return (self.x_range, self.y_range, self.z_range)[axis]

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> "SculptureConfig":
        """Build a config from a JSON-style mapping, rejecting unknown keys."""
        return _from_mapping(cls, payload, path="config")


@dataclass(frozen=True)
class ScaledPoint:
    x: float
    y: float
    z: float
    radius: float

    @property
    def position(self) -> Vec3:
        return (self.x, self.y, self.z)

    def as_row(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.z, self.radius)


@dataclass(frozen=True)
class SupportIndexSet:
    """Samples needing support, with the parameters that selected them.

    ``entries`` holds ``(order, sample_index)`` pairs where ``order`` is the
    position in the stride-ordered list of unshadowed samples. That number is
    what pieces and base slots are labelled with.
    """

    entries: Tuple[Tuple[int, int], ...]
    tolerance: float
    step: int
    exclude: Tuple[int, ...] = ()
    neighbor_window: int = 1

    @property
    def indices(self) -> Tuple[int, ...]:
        return tuple(index for _, index in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


@dataclass
class BuildIssue:
    """Per-entity failure that was skipped instead of aborting the run."""

    code: str
    severity: str  # "warning" | "error"
    message: str
    index: Optional[int] = None


@dataclass
class CradlePiece:
    """Flat laser-cut piece that seats the tube at one supported sample."""

    kind: str  # "leg" | "top"
    order: int
    sample_index: int
    outline: object  # shapely Polygon / MultiPolygon
    label_anchor: Vec2 = (0.0, 0.0)

    @property
    def label(self) -> str:
        return str(self.order)


@dataclass
class SculptureResult:
    """In-memory result of one pipeline run."""

    mode: OutputMode
    status: str
    cache_key: str
    solid: Optional[object] = None  # trimesh.Trimesh
    cut: List[object] = field(default_factory=list)
    engrave: List[object] = field(default_factory=list)
    pieces: List[CradlePiece] = field(default_factory=list)
    support_set: Optional[SupportIndexSet] = None
    issues: List[BuildIssue] = field(default_factory=list)
    metrics: Dict[str, float] = field(default_factory=dict)


def status_from_issues(issues: List[BuildIssue]) -> str:
    if any(issue.severity == "error" for issue in issues):
        return "error"
    if issues:
        return "warning"
    return "ok"


_NESTED = {
    "mapping": AxisMapping,
    "x_range": RangeSpec,
    "y_range": RangeSpec,
    "z_range": RangeSpec,
    "board": BoardSpec,
}


def _from_mapping(cls, payload: Mapping[str, object], path: str):
    if not isinstance(payload, Mapping):
        raise ConfigurationError(f"{path} must be a mapping, got {type(payload).__name__}")
    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(payload) - set(known))
    if unknown:
        raise ConfigurationError(f"Unknown {path} keys: {', '.join(unknown)}")

    kwargs: Dict[str, object] = {}
    for name, value in payload.items():
        nested = _NESTED.get(name) if cls is SculptureConfig else None
        if nested is not None and not is_dataclass(value):
            kwargs[name] = _from_mapping(nested, value, f"{path}.{name}")
        elif name == "support_strategy" and isinstance(value, str):
            try:
                kwargs[name] = SupportStrategy(value)
            except ValueError as exc:
                raise ConfigurationError(f"Unknown support strategy: {value}") from exc
        elif isinstance(value, list):
            kwargs[name] = tuple(value)
        else:
            kwargs[name] = value
    return cls(**kwargs)
