"""Pipeline run archive: one JSON record per pipeline run."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from .. import __version__
from ..models.buildspec import BuildSpec
from ..utils.artifacts import artifact_timestamp, unique_path

if TYPE_CHECKING:
    from .pipeline import PipelineOutcome


def build_pipeline_archive(
    spec: BuildSpec,
    outcome: PipelineOutcome,
    timestamp: str,
    duration_seconds: float = 0,
) -> dict:
    """Summarize a finished run, including every agent attempt."""
    report = outcome.gate_report
    return {
        "version": __version__,
        "run": {
            "id": timestamp,
            "timestamp": timestamp,
            "spec": spec.name,
            "targets": list(spec.targets),
            "durationSeconds": round(float(duration_seconds), 2),
            "iterations": outcome.iterations,
        },
        "state": outcome.state.value,
        "exitCode": outcome.exit_code,
        "failedPhase": outcome.failed_phase,
        "reason": outcome.reason,
        "qualityGates": {
            "required": list(spec.quality_gates),
            "passed": list(report.passed) if report else [],
            "failed": list(report.failed) if report else [],
        },
        "results": [r.model_dump(mode="json") for r in outcome.ctx.results],
    }


def export_pipeline_archive(
    spec: BuildSpec,
    outcome: PipelineOutcome,
    duration_seconds: float = 0,
) -> Path:
    """Write ``pipeline-<timestamp>.json`` into the run's log directory."""
    log_dir = outcome.ctx.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = artifact_timestamp()
    archive = build_pipeline_archive(spec, outcome, timestamp, duration_seconds)

    archive_path = unique_path(log_dir, f"pipeline-{timestamp}", ".json")
    archive_path.write_text(
        json.dumps(archive, indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    return archive_path
