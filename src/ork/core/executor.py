"""Agent execution with per-attempt logs and bounded retry.

A timed-out process is an ordinary failed attempt.
"""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path
from typing import Awaitable, Callable, Optional

from rich.console import Console
from rich.markup import escape

from ..checklist.runner import run_checklist
from ..models.registry import AgentDescriptor
from ..models.result import AgentOutcome, AgentResult, RunContext
from ..session.base import SessionFactory, get_session_factory
from ..utils.artifacts import artifact_timestamp, unique_path
from ..utils.sanitize import sanitize_error
from .agents import ChecklistInvocation, ScriptInvocation, Unimplemented, resolve_invocation
from .attempts import AttemptState, next_attempt_state
from .config import WORKSPACE_ENV, ConfigurationError, load_checklist

console = Console()

AgentExecutor = Callable[[AgentDescriptor, int, RunContext], Awaitable[AgentResult]]


class ProcessExecutionError(RuntimeError):
    """An agent exited non-zero or ran past its deadline."""

    def __init__(self, message: str, output: str = "", timed_out: bool = False):
        super().__init__(message)
        self.output = output
        self.timed_out = timed_out


def new_log_path(log_dir: Path, agent_id: str) -> Path:
    """Return a fresh ``<agent-id>-<timestamp>.log`` path that does not exist yet."""
    return unique_path(log_dir, f"{agent_id}-{artifact_timestamp()}", ".log")


async def run_process(
    argv: tuple[str, ...],
    cwd: Path,
    timeout_seconds: float,
    env: Optional[dict[str, str]] = None,
) -> str:
    """Run a process to completion and return its combined stdout/stderr."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd),
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        raise ProcessExecutionError(f"could not start {argv[0]}: {e}") from e

    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout_seconds)
    except asyncio.TimeoutError as e:
        if proc.returncode is None:
            proc.kill()
        await proc.wait()
        raise ProcessExecutionError(
            f"timed out after {timeout_seconds}s", timed_out=True
        ) from e

    output = stdout.decode("utf-8", errors="replace") if stdout else ""
    if proc.returncode != 0:
        raise ProcessExecutionError(f"exited with code {proc.returncode}", output=output)
    return output


async def _run_checklist_invocation(
    invocation: ChecklistInvocation,
    agent: AgentDescriptor,
    ctx: RunContext,
    session_factory: SessionFactory,
) -> str:
    try:
        checklist = load_checklist(invocation.checklist_path)
    except ConfigurationError as e:
        raise ProcessExecutionError(str(e)) from e

    try:
        result = await asyncio.wait_for(
            run_checklist(
                checklist,
                ctx.ui_artifact_root,
                session_factory,
                base_url=invocation.base_url,
            ),
            timeout=agent.timeout_seconds,
        )
    except asyncio.TimeoutError as e:
        raise ProcessExecutionError(
            f"timed out after {agent.timeout_seconds}s", timed_out=True
        ) from e
    except Exception as e:
        raise ProcessExecutionError(sanitize_error(str(e)) or type(e).__name__) from e

    output = result.to_json()
    if not result.success:
        raise ProcessExecutionError(
            f"{len(result.failures)} of {result.checkpoints_total} checkpoints failed",
            output=output,
        )
    return output


async def execute_agent(
    agent: AgentDescriptor,
    attempt: int,
    ctx: RunContext,
    session_factory: Optional[SessionFactory] = None,
) -> AgentResult:
    """Run one attempt of one agent and write its log file."""
    start = time.monotonic()
    log_file = new_log_path(ctx.log_dir, agent.id)
    invocation = resolve_invocation(agent, ctx.workspace_root)

    console.print(
        f"  [cyan]Running {agent.display_name} (attempt {attempt}/{agent.max_attempts})...[/cyan]"
    )

    if isinstance(invocation, Unimplemented):
        log_file.write_text(f"UNIMPLEMENTED: {invocation.reason}\n", encoding="utf-8")
        console.print(
            f"  [yellow]WARN[/yellow] {agent.display_name} not run: {escape(invocation.reason)}"
        )
        return AgentResult(
            agent_id=agent.id,
            attempt=attempt,
            success=True,
            outcome=AgentOutcome.UNIMPLEMENTED,
            duration_seconds=round(time.monotonic() - start, 3),
            log_file=str(log_file),
            error=invocation.reason,
        )

    try:
        if isinstance(invocation, ScriptInvocation):
            env = {**os.environ, WORKSPACE_ENV: str(ctx.workspace_root)}
            output = await run_process(
                invocation.argv, ctx.workspace_root, agent.timeout_seconds, env=env
            )
        elif isinstance(invocation, ChecklistInvocation):
            output = await _run_checklist_invocation(
                invocation, agent, ctx, session_factory or get_session_factory()
            )
        else:
            raise ValueError(f"Unhandled invocation: {invocation!r}")
    except ProcessExecutionError as e:
        duration = round(time.monotonic() - start, 3)
        error = sanitize_error(str(e))
        log_text = f"{e.output}\n{error}\n" if e.output else f"{error}\n"
        log_file.write_text(sanitize_error(log_text), encoding="utf-8")
        console.print(f"  [red]FAILED[/red] {agent.display_name}: {escape(error)}")
        return AgentResult(
            agent_id=agent.id,
            attempt=attempt,
            success=False,
            outcome=AgentOutcome.TIMED_OUT if e.timed_out else AgentOutcome.FAILED,
            duration_seconds=duration,
            log_file=str(log_file),
            error=error,
        )

    duration = round(time.monotonic() - start, 3)
    log_file.write_text(sanitize_error(output), encoding="utf-8")
    console.print(f"  [green]OK[/green] {agent.display_name} completed in {duration}s")
    return AgentResult(
        agent_id=agent.id,
        attempt=attempt,
        success=True,
        outcome=AgentOutcome.SUCCEEDED,
        duration_seconds=duration,
        log_file=str(log_file),
        quality_gates_satisfied=tuple(agent.quality_gates),
    )


async def run_agent_with_retry(
    agent: AgentDescriptor,
    ctx: RunContext,
    execute: AgentExecutor = execute_agent,
) -> tuple[RunContext, AttemptState]:
    """Run attempts 1..max_attempts until one succeeds.

    Returns the context with one result appended per attempt, and the terminal
    state (SUCCEEDED or EXHAUSTED).
    """
    state = AttemptState.PENDING
    attempt = 1

    while True:
        state = next_attempt_state(state, attempt, agent.max_attempts)
        result = await execute(agent, attempt, ctx)
        ctx = ctx.with_result(result)

        state = next_attempt_state(state, attempt, agent.max_attempts, result.success)
        if state == AttemptState.SUCCEEDED:
            return ctx, state

        state = next_attempt_state(state, attempt, agent.max_attempts)
        if state == AttemptState.EXHAUSTED:
            console.print(
                f"  [red]FAILED[/red] {agent.display_name} failed after {agent.max_attempts} attempts"
            )
            return ctx, state

        console.print(f"  [yellow]WARN[/yellow] Retrying {agent.display_name}...")
        attempt += 1
