"""Agent result and run context models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AgentOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    UNIMPLEMENTED = "unimplemented"


_SUCCESS_OUTCOMES = {AgentOutcome.SUCCEEDED, AgentOutcome.UNIMPLEMENTED}


class AgentResult(BaseModel):
    """One attempt of one agent. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    agent_id: str
    attempt: int = Field(ge=1)
    success: bool
    outcome: AgentOutcome
    duration_seconds: float = 0
    log_file: str = ""
    quality_gates_satisfied: tuple[str, ...] = ()
    error: Optional[str] = None

    @model_validator(mode="after")
    def _check_consistency(self) -> AgentResult:
        if self.success != (self.outcome in _SUCCESS_OUTCOMES):
            raise ValueError(f"outcome {self.outcome.value} contradicts success={self.success}")
        if self.quality_gates_satisfied and not self.success:
            raise ValueError("a failed attempt cannot satisfy quality gates")
        return self


class RunContext(BaseModel):
    """Everything one pipeline run has produced so far.

    Never mutated: every step returns a new context with the result appended.
    """

    model_config = ConfigDict(frozen=True)

    workspace_root: Path
    log_dir: Path
    ui_artifact_root: Path
    iteration: int = 1
    results: tuple[AgentResult, ...] = ()

    def with_result(self, result: AgentResult) -> RunContext:
        return self.model_copy(update={"results": self.results + (result,)})

    def next_iteration(self) -> RunContext:
        return self.model_copy(update={"iteration": self.iteration + 1})
