"""Run folders for sculpture builds.

Every CLI invocation gets ``<runs>/<stamp>_<name>_<mode>/`` holding a copy
of the samples, the resolved config, the exported artifacts and a
manifest. ``latest_<mode>`` points at the newest run of each output mode so
a solid pass and the support pass that follows it can be found side by side.
"""

from __future__ import annotations

import json
import os
import re
import shutil
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Sequence

from data_sculpture.contracts import OutputMode, SculptureConfig, SculptureResult


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")
    return slug or "sculpture"


def config_payload(config: SculptureConfig) -> Dict[str, Any]:
    payload = asdict(config)
    payload["support_strategy"] = config.support_strategy.value
    return payload


def _dump(path: Path, payload: Dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


@dataclass
class SculptureRun:
    run_id: str
    design_name: str
    mode: OutputMode
    run_dir: Path
    created_utc: str

    @property
    def input_dir(self) -> Path:
        return self.run_dir / "input"

    @property
    def artifacts_dir(self) -> Path:
        return self.run_dir / "artifacts"

    @property
    def manifest_path(self) -> Path:
        return self.run_dir / "manifest.json"

    @property
    def metrics_path(self) -> Path:
        return self.run_dir / "metrics.json"

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary.md"

    def record_inputs(self, samples_path: Path, config: SculptureConfig) -> Path:
        """Copy the sample file and freeze the resolved config next to it."""
        src = Path(samples_path)
        dst = self.input_dir / src.name
        if src.resolve() != dst.resolve():
            shutil.copy2(src, dst)
        _dump(self.input_dir / "config.json", config_payload(config))
        return dst

    def write_metrics(self, result: SculptureResult, elapsed_s: float) -> Path:
        return _dump(self.metrics_path, {
            "run_id": self.run_id,
            "mode": self.mode.value,
            "status": result.status,
            "elapsed_s": round(elapsed_s, 3),
            "cache_key": result.cache_key,
            "metrics": result.metrics,
            "support_entries": [list(entry) for entry in (result.support_set or ())],
            "issues": [asdict(issue) for issue in result.issues],
        })

    def write_summary(self, result: SculptureResult, elapsed_s: float) -> Path:
        lines = [
            f"# Run {self.run_id}",
            "",
            f"- Mode: {self.mode.value}",
            f"- Status: **{result.status.upper()}**",
            f"- Duration: {elapsed_s:.2f}s",
            f"- Cache key: `{result.cache_key[:16]}`",
            f"- Supports: {len(result.support_set or ())}",
            f"- Issues: {len(result.issues)}",
            "",
        ]
        lines.extend(f"- [{i.severity}] {i.code}: {i.message}" for i in result.issues)
        self.summary_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return self.summary_path

    def write_manifest(
        self,
        result: SculptureResult,
        input_samples: Path,
        outputs: Sequence[Path],
    ) -> Path:
        return _dump(self.manifest_path, {
            "run_id": self.run_id,
            "design_name": self.design_name,
            "created_utc": self.created_utc,
            "mode": self.mode.value,
            "status": result.status,
            "cache_key": result.cache_key,
            "input_samples": str(input_samples),
            "input_config": str(self.input_dir / "config.json"),
            "artifacts": {
                "outputs": [str(path) for path in outputs],
                "metrics": str(self.metrics_path),
                "summary": str(self.summary_path),
            },
        })

    def mark_latest(self) -> Path:
        """Point ``latest_<mode>`` at this run (a text file where symlinks fail)."""
        pointer = self.run_dir.parent / f"latest_{self.mode.value}"
        if pointer.is_symlink() or pointer.is_file():
            pointer.unlink()
        elif pointer.is_dir():
            shutil.rmtree(pointer)
        try:
            pointer.symlink_to(os.path.relpath(self.run_dir, pointer.parent))
        except OSError:
            pointer.mkdir(parents=True, exist_ok=True)
            (pointer / "latest_run.txt").write_text(self.run_dir.name, encoding="utf-8")
        return pointer


def start_run(runs_root: Path, design_name: str, mode: OutputMode) -> SculptureRun:
    now = datetime.now(timezone.utc)
    run_id = f"{now.strftime('%Y%m%d_%H%M%S')}_{slugify(design_name)}_{mode.value}"
    run = SculptureRun(
        run_id=run_id,
        design_name=design_name,
        mode=mode,
        run_dir=Path(runs_root) / run_id,
        created_utc=now.strftime("%Y-%m-%dT%H:%M:%SZ"),
    )
    run.input_dir.mkdir(parents=True, exist_ok=True)
    run.artifacts_dir.mkdir(parents=True, exist_ok=True)
    return run

