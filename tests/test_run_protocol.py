"""Tests for run_protocol.py: run folders and latest pointers."""
import json

from data_sculpture.contracts import (
    BuildIssue,
    OutputMode,
    SculptureConfig,
    SculptureResult,
    SupportIndexSet,
)
from data_sculpture.run_protocol import slugify, start_run


def _result():
    return SculptureResult(
        mode=OutputMode.SOLID,
        status="warning",
        cache_key="f" * 64,
        support_set=SupportIndexSet(entries=((0, 1),), tolerance=4.0, step=1),
        issues=[BuildIssue("degenerate_orientation", "warning", "marker 0", 0)],
        metrics={"faces": 120.0},
    )


def test_slugify():
    assert slugify("  Daily Temps / 2024 ") == "daily-temps-2024"
    assert slugify("!!!") == "sculpture"


def test_run_folder_layout(tmp_path, wave_samples):
    samples_path = tmp_path / "wave.json"
    samples_path.write_text(json.dumps([list(s) for s in wave_samples]))
    run = start_run(tmp_path / "runs", "Wave Run", OutputMode.SOLID)
    assert run.run_id.endswith("_wave-run_solid")
    assert run.input_dir.is_dir() and run.artifacts_dir.is_dir()

    copied = run.record_inputs(samples_path, SculptureConfig(support_exclude=(2,)))
    assert copied.read_text() == samples_path.read_text()
    config = json.loads((run.input_dir / "config.json").read_text())
    assert config["support_exclude"] == [2]
    assert config["support_strategy"] == "columns"

    result = _result()
    run.write_metrics(result, 1.23456)
    run.write_summary(result, 1.23456)
    run.write_manifest(result, copied, [run.artifacts_dir / "wave_solid.stl"])

    metrics = json.loads(run.metrics_path.read_text())
    assert metrics["elapsed_s"] == 1.235
    assert metrics["support_entries"] == [[0, 1]]
    assert metrics["issues"][0]["code"] == "degenerate_orientation"
    summary = run.summary_path.read_text()
    assert "**WARNING**" in summary
    assert "degenerate_orientation" in summary
    manifest = json.loads(run.manifest_path.read_text())
    assert manifest["design_name"] == "Wave Run"
    assert manifest["artifacts"]["outputs"][0].endswith("wave_solid.stl")


def test_latest_pointer_per_mode(tmp_path):
    solid = start_run(tmp_path, "a", OutputMode.SOLID)
    solid.mark_latest()
    frame = start_run(tmp_path, "a", OutputMode.BASE_FRAME_2D)
    pointer = frame.mark_latest()
    assert pointer.name == "latest_base_frame_2d"
    assert (tmp_path / "latest_solid").exists()
    # Re-pointing replaces the old pointer.
    assert solid.mark_latest() == tmp_path / "latest_solid"
