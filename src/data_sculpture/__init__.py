"""Public API for the data sculpture pipeline."""

from data_sculpture.contracts import (
    BoardSpec,
    OutputMode,
    SculptureConfig,
    SculptureResult,
    SupportIndexSet,
)
from data_sculpture.pipeline import export_result, resolve_output_mode, run_pipeline

__all__ = [
    "BoardSpec",
    "OutputMode",
    "SculptureConfig",
    "SculptureResult",
    "SupportIndexSet",
    "export_result",
    "resolve_output_mode",
    "run_pipeline",
]
