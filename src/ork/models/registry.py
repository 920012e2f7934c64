"""Agent registry data models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Phase(str, Enum):
    PLAN = "plan"
    BUILD = "build"
    VERIFY = "verify"
    REVIEW = "review"
    DEPLOY = "deploy"


class AgentDescriptor(BaseModel):
    """Metadata for one external build/test/review step.

    ``preconditions`` and ``postconditions`` are descriptive only.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    phase: Phase
    description: str = ""
    preconditions: list[str] = []
    postconditions: list[str] = []
    quality_gates: list[str] = []
    max_attempts: int = Field(default=1, ge=1)
    timeout_seconds: float = Field(default=300, gt=0)
    command: Optional[list[str]] = None

    @property
    def display_name(self) -> str:
        return self.name or self.id


class PhaseDescriptor(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    agents: list[str] = []
    required: bool = False


class QualityLoopConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    enabled: bool = True
    retry_on_failure: bool = True

    @property
    def retries_enabled(self) -> bool:
        return self.enabled and self.retry_on_failure


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    log_directory: str = "artifacts/logs/agents"


class PipelineConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    max_loop_iterations: int = Field(default=3, ge=1)
    phases: list[PhaseDescriptor] = []
    quality_loop: QualityLoopConfig = QualityLoopConfig()
    logging: LoggingConfig = LoggingConfig()


class AgentRegistry(BaseModel):
    """Registered agents plus the pipeline that sequences them."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    agents: list[AgentDescriptor]
    pipeline: PipelineConfig = PipelineConfig()

    @model_validator(mode="after")
    def _validate_references(self) -> AgentRegistry:
        seen: set[str] = set()
        for agent in self.agents:
            if agent.id in seen:
                raise ValueError(f"duplicate agent id: {agent.id}")
            seen.add(agent.id)

        for phase in self.pipeline.phases:
            unknown = [a for a in phase.agents if a not in seen]
            if unknown:
                raise ValueError(
                    f"phase '{phase.name}' references unknown agents: {', '.join(unknown)}"
                )
        return self

    def get(self, agent_id: str) -> AgentDescriptor:
        for agent in self.agents:
            if agent.id == agent_id:
                return agent
        raise KeyError(agent_id)

    def producible_gates(self) -> set[str]:
        gates: set[str] = set()
        for agent in self.agents:
            gates.update(agent.quality_gates)
        return gates
