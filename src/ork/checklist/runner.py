"""Checklist execution against a single browser session.

Checkpoints run strictly in order and a failed action ends its own
checkpoint only. Every run leaves ``result.json`` plus its screenshots in a
fresh timestamped directory.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from ..core.config import UI_ARTIFACTS_DIR, ConfigurationError, load_checklist
from ..formatters.junit import export_checklist_junit
from ..models.checklist import Checklist, Checkpoint, CheckpointFailure, RunResult
from ..session.base import BrowserSession, SessionFactory, get_session_factory
from ..utils.artifacts import artifact_timestamp, unique_path
from .actions import ActionExecutionError, Sleep, run_action_with_retry

console = Console()

RESULT_FILENAME = "result.json"
CANCELLED_ERROR = "Run cancelled before completion"


@dataclass(frozen=True)
class CheckpointOutcome:
    checkpoint_id: str
    success: bool
    actions_run: int
    error: Optional[str] = None


async def run_checkpoint(
    checkpoint: Checkpoint,
    session: BrowserSession,
    base_url: str,
    run_dir: Path,
    sleep: Sleep = asyncio.sleep,
) -> CheckpointOutcome:
    """Run a checkpoint's actions in order, stopping at the first exhausted action."""
    actions_run = 0
    for action in checkpoint.actions:
        actions_run += 1
        try:
            await run_action_with_retry(action, session, base_url, run_dir, sleep=sleep)
        except ActionExecutionError as e:
            return CheckpointOutcome(checkpoint.id, False, actions_run, str(e))
    return CheckpointOutcome(checkpoint.id, True, actions_run)


def create_run_dir(artifact_root: Path, timestamp: Optional[str] = None) -> Path:
    """Create a new, never-reused run directory named after ``timestamp``."""
    artifact_root.mkdir(parents=True, exist_ok=True)
    run_dir = unique_path(artifact_root, timestamp or artifact_timestamp())
    run_dir.mkdir()
    return run_dir


def write_run_result(result: RunResult, run_dir: Path) -> Path:
    path = run_dir / RESULT_FILENAME
    path.write_text(result.to_json(), encoding="utf-8")
    return path


async def run_checklist(
    checklist: Checklist,
    artifact_root: Path,
    session_factory: SessionFactory,
    base_url: Optional[str] = None,
    sleep: Sleep = asyncio.sleep,
) -> RunResult:
    """Run every checkpoint of a checklist in one session and persist the result.

    A cancelled run (e.g. an agent deadline) still leaves a failed
    ``result.json`` naming the checkpoint that was interrupted.
    """
    timestamp = artifact_timestamp()
    run_dir = create_run_dir(artifact_root, timestamp)
    url = base_url or checklist.base_url

    console.print(f"  [cyan]Running checklist:[/cyan] {escape(checklist.name)}")
    console.print(f"  Base URL:    {url}")
    console.print(f"  Screenshots: {run_dir}")
    console.print()

    passed = 0
    failures: list[CheckpointFailure] = []
    current: Optional[Checkpoint] = None

    def build_result() -> RunResult:
        return RunResult(
            success=not failures,
            checkpoints_passed=passed,
            checkpoints_total=len(checklist.checkpoints),
            failures=failures,
            screenshot_dir=str(run_dir),
            timestamp=timestamp,
        )

    try:
        async with session_factory() as session:
            for checkpoint in checklist.checkpoints:
                current = checkpoint
                console.print(f"  [cyan]Checkpoint[/cyan] {escape(checkpoint.id)} - {escape(checkpoint.description)}")
                outcome = await run_checkpoint(checkpoint, session, url, run_dir, sleep=sleep)

                if outcome.success:
                    passed += 1
                    console.print(f"  [green]PASS[/green] {escape(checkpoint.id)}")
                else:
                    failures.append(
                        CheckpointFailure(
                            checkpoint=checkpoint.id,
                            description=checkpoint.description,
                            error=outcome.error or "Unknown error",
                        )
                    )
                    console.print(f"  [red]FAIL[/red] {escape(checkpoint.id)} - {escape(outcome.error or '')}")
                current = None

            result = build_result()
            write_run_result(result, run_dir)
    except asyncio.CancelledError:
        failures.append(
            CheckpointFailure(
                checkpoint=current.id if current else checklist.name,
                description=current.description if current else "",
                error=CANCELLED_ERROR,
            )
        )
        write_run_result(build_result(), run_dir)
        raise

    return result


def print_run_summary(result: RunResult) -> None:
    status = "[green]PASS[/green]" if result.success else "[red]FAIL[/red]"
    console.print()
    console.print("  " + "=" * 58)
    console.print("  [bold]VERIFICATION RESULTS[/bold]")
    console.print("  " + "=" * 58)
    console.print(f"  Status:      {status}")
    console.print(f"  Checkpoints: {result.checkpoints_passed}/{result.checkpoints_total} passed")
    console.print(f"  Screenshots: {result.screenshot_dir}")
    console.print(f"  Timestamp:   {result.timestamp}")
    if result.failures:
        console.print()
        console.print("  [red]Failures:[/red]")
        for i, failure in enumerate(result.failures, start=1):
            console.print(f"    {i}. {escape(failure.checkpoint)}: {escape(failure.error)}")
    console.print("  " + "=" * 58)
    console.print()


async def verify_checklist(
    checklist_path: Path,
    workspace_root: Path,
    base_url: Optional[str] = None,
    junit_path: Optional[Path] = None,
    session_factory: Optional[SessionFactory] = None,
) -> int:
    """Run one checklist file end to end. Returns the process exit code."""
    try:
        checklist = load_checklist(checklist_path)
    except ConfigurationError as e:
        console.print(f"  [red]ERROR[/red] {escape(str(e))}")
        return 1

    try:
        result = await run_checklist(
            checklist,
            workspace_root / UI_ARTIFACTS_DIR,
            session_factory or get_session_factory(),
            base_url=base_url,
        )
    except Exception as e:
        console.print(f"  [red]ERROR[/red] Fatal error: {escape(str(e))}")
        return 1

    print_run_summary(result)
    console.print(f"  Result saved to: {Path(result.screenshot_dir) / RESULT_FILENAME}")

    if junit_path:
        junit = export_checklist_junit(checklist, result, junit_path)
        console.print(
            f"  [green]OK[/green] JUnit XML: {junit['total_tests']} tests, "
            f"{junit['failures']} failures"
        )

    return 0 if result.success else 1
