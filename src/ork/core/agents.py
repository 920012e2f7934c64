"""Agent kinds and how each kind is invoked.

Every agent id maps to exactly one kind, and every kind to exactly one
invocation variant. Kinds that are not wired into the pipeline resolve to
``Unimplemented`` so the gap shows up in the console and in the logs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ..models.registry import AgentDescriptor
from .config import CHECKLISTS_DIR

IMPLEMENTER_PREFIX = "implementer-"
INTEGRATOR_ID = "integrator"

# Checked in order; the first one present is run by the verifier.
VERIFIER_CHECKLISTS = ("auth.yaml", "web-smoke.yaml")


class AgentKind(str, Enum):
    PLANNER = "planner"
    SCAFFOLDER = "scaffolder"
    IMPLEMENTER_WEB = "implementer-web"
    IMPLEMENTER_BACKEND = "implementer-backend"
    IMPLEMENTER_MOBILE = "implementer-mobile"
    INTEGRATOR = "integrator"
    VERIFIER = "verifier"
    REVIEWER = "reviewer"
    DEPLOYER = "deployer"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ScriptInvocation:
    """Run an external process; exit code 0 within the deadline is success."""

    argv: tuple[str, ...]


@dataclass(frozen=True)
class ChecklistInvocation:
    """Run a UI checklist in-process; an all-pass RunResult is success."""

    checklist_path: Path
    base_url: Optional[str] = None


@dataclass(frozen=True)
class Unimplemented:
    """No invocation is wired for this agent kind."""

    reason: str


AgentInvocation = Union[ScriptInvocation, ChecklistInvocation, Unimplemented]


def agent_kind(agent_id: str) -> AgentKind:
    try:
        return AgentKind(agent_id)
    except ValueError:
        return AgentKind.UNKNOWN


def implementer_target(agent_id: str) -> Optional[str]:
    """Return the target an implementer agent builds, or None for other agents."""
    if agent_id.startswith(IMPLEMENTER_PREFIX):
        return agent_id[len(IMPLEMENTER_PREFIX):]
    return None


def find_verifier_checklist(workspace_root: Path) -> Optional[Path]:
    checklists_dir = workspace_root / CHECKLISTS_DIR
    for name in VERIFIER_CHECKLISTS:
        candidate = checklists_dir / name
        if candidate.exists():
            return candidate
    return None


def resolve_invocation(agent: AgentDescriptor, workspace_root: Path) -> AgentInvocation:
    """Pick the invocation for an agent. An explicit ``command`` always wins."""
    if agent.command:
        return ScriptInvocation(tuple(agent.command))

    kind = agent_kind(agent.id)

    if kind in (
        AgentKind.SCAFFOLDER,
        AgentKind.IMPLEMENTER_WEB,
        AgentKind.IMPLEMENTER_BACKEND,
        AgentKind.IMPLEMENTER_MOBILE,
    ):
        return ScriptInvocation(("npx", "tsx", f"agents/{kind.value}.ts"))
    elif kind == AgentKind.VERIFIER:
        checklist = find_verifier_checklist(workspace_root)
        if checklist is None:
            return Unimplemented(
                f"no checklist found ({', '.join(VERIFIER_CHECKLISTS)} in {CHECKLISTS_DIR})"
            )
        return ChecklistInvocation(checklist_path=checklist)
    elif kind == AgentKind.PLANNER:
        return Unimplemented("planner runs before the pipeline")
    elif kind == AgentKind.INTEGRATOR:
        return Unimplemented("integrator is not wired into the pipeline")
    elif kind == AgentKind.REVIEWER:
        return Unimplemented("reviewer runs outside the pipeline")
    elif kind == AgentKind.DEPLOYER:
        return Unimplemented("deployer runs outside the pipeline")
    elif kind == AgentKind.UNKNOWN:
        return Unimplemented(f"no invocation known for agent '{agent.id}'")
    else:
        raise ValueError(f"Unhandled agent kind: {kind}")
