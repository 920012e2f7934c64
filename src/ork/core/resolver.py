"""Agent resolution: which of a phase's agents apply to the active targets."""

from __future__ import annotations

from rich.console import Console

from ..models.registry import AgentDescriptor, AgentRegistry, PhaseDescriptor
from .agents import INTEGRATOR_ID, implementer_target

console = Console()


def resolve_agents_for_phase(
    phase: PhaseDescriptor,
    registry: AgentRegistry,
    targets: list[str],
) -> list[AgentDescriptor]:
    """Return the phase's agents, in declared order, that apply to ``targets``.

    - ``implementer-<target>`` is skipped when <target> was not requested.
    - ``integrator`` is skipped when fewer than two targets are active.

    An empty result is not an error: the phase is vacuously satisfied.
    """
    resolved: list[AgentDescriptor] = []

    for agent_id in phase.agents:
        agent = registry.get(agent_id)

        target = implementer_target(agent_id)
        if target is not None and target not in targets:
            console.print(f"  [dim]SKIP[/dim] {agent.display_name} ({target} not in targets)")
            continue

        if agent_id == INTEGRATOR_ID and len(targets) < 2:
            console.print(f"  [dim]SKIP[/dim] {agent.display_name} (single target)")
            continue

        resolved.append(agent)

    return resolved
