from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
SCRIPT = REPO_ROOT / "scripts" / "generate_sculpture.py"


def _write_inputs(tmp_path: Path, wave_samples) -> tuple[Path, Path]:
    samples_path = tmp_path / "wave.json"
    samples_path.write_text(json.dumps({"samples": [list(s) for s in wave_samples]}))
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({
        "subdivisions": 1,
        "sphere_subdivisions": 1,
        "cylinder_sections": 12,
        "support_step": 2,
    }))
    return samples_path, config_path


def _run(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, str(SCRIPT), *args], capture_output=True, text=True
    )


def test_cli_solid_then_supports(tmp_path: Path, wave_samples):
    samples_path, config_path = _write_inputs(tmp_path, wave_samples)
    common = [
        "--samples", str(samples_path),
        "--config", str(config_path),
        "--name", "wave",
        "--runs-dir", str(tmp_path / "runs"),
        "--cache-dir", str(tmp_path / "cache"),
    ]

    proc = _run(*common, "--data-part")
    assert proc.returncode == 0, proc.stderr
    assert "Mode: solid" in proc.stdout

    proc = _run(*common, "--supports", "--strategy", "walls")
    assert proc.returncode == 0, proc.stderr

    run_dirs = sorted(
        path for path in (tmp_path / "runs").iterdir()
        if path.is_dir() and not path.name.startswith("latest")
    )
    assert len(run_dirs) == 2
    assert (tmp_path / "runs" / "latest_solid").exists()
    assert (tmp_path / "runs" / "latest_supports").exists()
    for run_dir in run_dirs:
        manifest = json.loads((run_dir / "manifest.json").read_text(encoding="utf-8"))
        metrics = json.loads((run_dir / "metrics.json").read_text(encoding="utf-8"))
        assert (run_dir / "summary.md").exists()
        assert (run_dir / "input" / "config.json").exists()
        assert manifest["design_name"] == "wave"
        assert metrics["cache_key"]
        for output in manifest["artifacts"]["outputs"]:
            assert Path(output).exists()


def test_cli_stale_cache_exit_code(tmp_path: Path, wave_samples):
    samples_path, config_path = _write_inputs(tmp_path, wave_samples)
    proc = _run(
        "--samples", str(samples_path),
        "--config", str(config_path),
        "--runs-dir", str(tmp_path / "runs"),
        "--cache-dir", str(tmp_path / "empty_cache"),
        "--supports",
    )
    assert proc.returncode == 2
    assert "run the solid pass first" in proc.stderr


def test_cli_degenerate_range_exit_code(tmp_path: Path):
    samples_path = tmp_path / "flat.json"
    samples_path.write_text(json.dumps([[float(i), float(i % 2), 1.0, 1.0] for i in range(4)]))
    proc = _run(
        "--samples", str(samples_path),
        "--runs-dir", str(tmp_path / "runs"),
        "--cache-dir", str(tmp_path / "cache"),
        "--base",
    )
    assert proc.returncode == 2
    assert "Degenerate z range" in proc.stderr
    assert "Traceback" not in proc.stderr


def test_cli_rejects_contradictory_switches(tmp_path: Path, wave_samples):
    samples_path, _ = _write_inputs(tmp_path, wave_samples)
    proc = _run("--samples", str(samples_path), "--data-part", "--base")
    assert proc.returncode == 2
    assert "data part is built on its own" in proc.stderr
