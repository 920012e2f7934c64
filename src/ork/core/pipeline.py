"""Pipeline orchestrator.

Runs the declared phases in order, one agent at a time, then checks the
BuildSpec's quality gates. Unsatisfied gates re-run the whole phase
sequence, up to ``max_loop_iterations`` passes::

    INIT -> RUN_PHASES -> EVAL_GATES -> DONE
                |              |-> RETRY -> RUN_PHASES
                |              '-> FAILED
                '-> FAILED (required phase exhausted)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from .. import __version__
from ..models.buildspec import BuildSpec
from ..models.registry import AgentDescriptor, AgentRegistry, PhaseDescriptor
from ..models.result import RunContext
from .agents import resolve_invocation
from .archive import export_pipeline_archive
from .attempts import AttemptState
from .config import ConfigurationError, create_run_context, load_workspace
from .executor import AgentExecutor, execute_agent, run_agent_with_retry
from .gates import GateReport, evaluate_quality_gates
from .resolver import resolve_agents_for_phase

console = Console()

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class PipelineState(str, Enum):
    INIT = "init"
    RUN_PHASES = "run_phases"
    EVAL_GATES = "eval_gates"
    RETRY = "retry"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class PhaseRun:
    ctx: RunContext
    success: bool
    fatal: bool = False


@dataclass(frozen=True)
class PipelineOutcome:
    state: PipelineState
    ctx: RunContext
    gate_report: Optional[GateReport] = None
    failed_phase: Optional[str] = None
    reason: str = ""

    @property
    def exit_code(self) -> int:
        return EXIT_SUCCESS if self.state == PipelineState.DONE else EXIT_FAILURE

    @property
    def iterations(self) -> int:
        return self.ctx.iteration


def state_after_gates(
    report: GateReport,
    iteration: int,
    max_iterations: int,
    retry_enabled: bool,
) -> PipelineState:
    """Decide what follows a gate check. No required gates counts as satisfied."""
    if report.satisfied:
        return PipelineState.DONE
    if retry_enabled and iteration < max_iterations:
        return PipelineState.RETRY
    return PipelineState.FAILED


async def run_phase(
    phase: PhaseDescriptor,
    spec: BuildSpec,
    registry: AgentRegistry,
    ctx: RunContext,
    execute: AgentExecutor = execute_agent,
) -> PhaseRun:
    """Run a phase's resolved agents in order, each to success or exhaustion."""
    console.print()
    console.print(f"  [bold cyan]=== PHASE: {phase.name.upper()} ===[/bold cyan]")

    agents = resolve_agents_for_phase(phase, registry, spec.targets)
    if not agents:
        console.print(f"  [yellow]WARN[/yellow] No agents for phase: {phase.name}")
        return PhaseRun(ctx=ctx, success=True)

    success = True
    for agent in agents:
        ctx, state = await run_agent_with_retry(agent, ctx, execute)
        if state == AttemptState.EXHAUSTED:
            success = False
            if phase.required:
                return PhaseRun(ctx=ctx, success=False, fatal=True)

    return PhaseRun(ctx=ctx, success=success)


async def run_pipeline(
    spec: BuildSpec,
    registry: AgentRegistry,
    ctx: RunContext,
    execute: AgentExecutor = execute_agent,
) -> PipelineOutcome:
    """Drive the pipeline state machine to DONE or FAILED."""
    pipeline = registry.pipeline
    max_iterations = pipeline.max_loop_iterations
    report: Optional[GateReport] = None
    state = PipelineState.INIT

    while True:
        if state == PipelineState.INIT:
            state = PipelineState.RUN_PHASES

        elif state == PipelineState.RUN_PHASES:
            if ctx.iteration > 1:
                console.print()
                console.print(
                    f"  [yellow]=== QUALITY LOOP ITERATION {ctx.iteration}/{max_iterations} ===[/yellow]"
                )
            for phase in pipeline.phases:
                phase_run = await run_phase(phase, spec, registry, ctx, execute)
                ctx = phase_run.ctx
                if phase_run.fatal:
                    console.print(
                        f"  [red]ERROR[/red] Required phase {phase.name} failed, stopping pipeline"
                    )
                    return PipelineOutcome(
                        state=PipelineState.FAILED,
                        ctx=ctx,
                        failed_phase=phase.name,
                        reason=f"required phase '{phase.name}' failed",
                    )
            state = PipelineState.EVAL_GATES

        elif state == PipelineState.EVAL_GATES:
            report = evaluate_quality_gates(spec.quality_gates, ctx.results)
            if spec.quality_gates:
                console.print()
                console.print("  [bold]=== QUALITY GATE CHECK ===[/bold]")
                console.print(f"  [green]Passed:[/green] {', '.join(report.passed) or 'none'}")
                if report.failed:
                    console.print(f"  [red]Failed:[/red] {', '.join(report.failed)}")
            state = state_after_gates(
                report, ctx.iteration, max_iterations, pipeline.quality_loop.retries_enabled
            )

        elif state == PipelineState.RETRY:
            console.print("  [yellow]WARN[/yellow] Quality gates not satisfied, retrying...")
            ctx = ctx.next_iteration()
            state = PipelineState.RUN_PHASES

        elif state == PipelineState.DONE:
            if spec.quality_gates:
                console.print("  [green]OK[/green] All quality gates satisfied")
            return PipelineOutcome(state=state, ctx=ctx, gate_report=report)

        elif state == PipelineState.FAILED:
            if ctx.iteration >= max_iterations:
                reason = "quality gates failed and max iterations reached"
            else:
                reason = "quality gates failed and quality loop retries are disabled"
            console.print(f"  [red]ERROR[/red] {reason.capitalize()}")
            return PipelineOutcome(state=state, ctx=ctx, gate_report=report, reason=reason)

        else:
            raise ValueError(f"Unhandled pipeline state: {state}")


def plan_pipeline(
    spec: BuildSpec,
    registry: AgentRegistry,
) -> list[tuple[PhaseDescriptor, list[AgentDescriptor]]]:
    """Resolve every phase's agents without running anything."""
    return [
        (phase, resolve_agents_for_phase(phase, registry, spec.targets))
        for phase in registry.pipeline.phases
    ]


def print_plan(spec: BuildSpec, registry: AgentRegistry, workspace_root: Path) -> None:
    console.print()
    console.print(f"  [bold cyan]ORK[/bold cyan] v{__version__} - plan for {escape(spec.name)}")
    console.print(f"  Targets:       {', '.join(spec.targets)}")
    console.print(f"  Quality gates: {', '.join(spec.quality_gates) or 'none'}")
    for phase, agents in plan_pipeline(spec, registry):
        required = " (required)" if phase.required else ""
        console.print(f"\n  [cyan]{phase.name}[/cyan]{required}")
        if not agents:
            console.print("    [dim](no agents)[/dim]")
        for agent in agents:
            invocation = resolve_invocation(agent, workspace_root)
            gates = ", ".join(agent.quality_gates) or "-"
            console.print(
                f"    {agent.id}  attempts={agent.max_attempts} timeout={agent.timeout_seconds}s "
                f"gates={gates}  [dim]{escape(repr(invocation))}[/dim]"
            )
    console.print()


async def run_build(
    workspace_root: Path,
    spec_path: Optional[Path] = None,
    registry_path: Optional[Path] = None,
    execute: AgentExecutor = execute_agent,
) -> int:
    """Load the workspace, run the pipeline, archive the run. Returns exit code."""
    start_time = time.time()

    try:
        spec, registry = load_workspace(workspace_root, spec_path, registry_path)
    except ConfigurationError as e:
        console.print(f"  [red]ERROR[/red] {escape(str(e))}")
        return EXIT_FAILURE

    ctx = create_run_context(workspace_root, registry)

    console.print()
    console.print(f"  [bold cyan]ORK PIPELINE[/bold cyan] v{__version__}")
    console.print(f"  BuildSpec:     [white]{escape(spec.name)}[/white]")
    console.print(f"  Targets:       [white]{', '.join(spec.targets)}[/white]")
    console.print(f"  Quality gates: [white]{', '.join(spec.quality_gates) or 'none'}[/white]")

    outcome = await run_pipeline(spec, registry, ctx, execute)

    archive_path = export_pipeline_archive(
        spec, outcome, duration_seconds=time.time() - start_time
    )

    console.print()
    if outcome.exit_code == EXIT_SUCCESS:
        console.print("  [green]=== PIPELINE COMPLETE ===[/green]")
    else:
        console.print(f"  [red]=== PIPELINE FAILED ===[/red] {escape(outcome.reason)}")
    console.print(f"  Agent logs: {outcome.ctx.log_dir}")
    console.print(f"  Run record: {archive_path}")
    console.print()

    return outcome.exit_code
