#!/usr/bin/env python3
"""Build one part of a data sculpture (data part, supports or base)."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from data_sculpture import SculptureConfig, export_result, resolve_output_mode, run_pipeline
from data_sculpture.contracts import (
    ConfigurationError,
    DegenerateRangeError,
    StaleArtifactError,
    SupportStrategy,
)
from data_sculpture.run_protocol import start_run
from data_sculpture.samples import load_samples


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Turn a sample sequence into a printable data sculpture"
    )
    parser.add_argument(
        "--samples", required=True, help="Sample rows (.json or .csv)"
    )
    parser.add_argument("--config", default=None, help="JSON file with SculptureConfig fields")
    parser.add_argument("--name", default="sculpture", help="Design/run name")
    parser.add_argument("--runs-dir", default="runs", help="Runs output root")
    parser.add_argument("--cache-dir", default="cache", help="Cached data-part solids")

    modes = parser.add_argument_group("output mode")
    modes.add_argument("--data-part", action="store_true", help="Build the data-part solid")
    modes.add_argument("--supports", action="store_true", help="Build 3D support scaffolding")
    modes.add_argument("--base", action="store_true", help="Build the display base")
    modes.add_argument("--engrave", action="store_true", help="Base as 2D engrave pattern")
    modes.add_argument("--cut", action="store_true", help="Base as 2D cut pattern")

    parser.add_argument(
        "--strategy",
        choices=[s.value for s in SupportStrategy],
        default=None,
        help="Support strategy for --supports",
    )
    parser.add_argument(
        "--rebuild-solid",
        action="store_true",
        help="Rebuild the data part when no cached solid matches the inputs",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )
    return parser


def _load_config(path: str | None) -> SculptureConfig:
    if path is None:
        return SculptureConfig()
    with open(path, "r", encoding="utf-8") as handle:
        return SculptureConfig.from_dict(json.load(handle))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    log = logging.getLogger("generate_sculpture")

    try:
        config = _load_config(args.config)
        if args.strategy:
            config = replace(config, support_strategy=SupportStrategy(args.strategy))
        mode = resolve_output_mode(
            data_part=args.data_part,
            base=args.base,
            engrave=args.engrave,
            cut=args.cut,
            supports=args.supports,
        )
        samples = load_samples(Path(args.samples), config.mapping)
    except ConfigurationError as exc:
        parser.error(str(exc))

    started = time.perf_counter()
    run = start_run(Path(args.runs_dir), args.name, mode)
    copied = run.record_inputs(Path(args.samples), config)

    try:
        result = run_pipeline(
            samples,
            config,
            mode,
            cache_dir=Path(args.cache_dir),
            rebuild_solid=args.rebuild_solid,
        )
    except (StaleArtifactError, DegenerateRangeError) as exc:
        log.error("%s", exc)
        return 2
    elapsed = time.perf_counter() - started

    outputs = export_result(result, run.artifacts_dir, args.name)
    run.write_metrics(result, elapsed)
    run.write_summary(result, elapsed)
    run.write_manifest(result, copied, outputs)
    run.mark_latest()

    print(f"Run ID: {run.run_id}")
    print(f"Run dir: {run.run_dir}")
    print(f"Mode: {mode.value}")
    print(f"Status: {result.status.upper()}")
    print(f"Supports: {len(result.support_set or ())}")
    for path in outputs:
        print(f"Output: {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
