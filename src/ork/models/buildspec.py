"""BuildSpec data model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BuildSpec(BaseModel):
    """What is being built: targets and the quality gates that must pass.

    Only the fields the pipeline needs are modelled; anything else in
    ``workspace/spec.json`` (deploy targets, features, ...) is ignored.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    targets: list[str] = Field(min_length=1)
    quality_gates: list[str] = []

    @field_validator("targets")
    @classmethod
    def _dedupe_targets(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        result: list[str] = []
        for target in value:
            if target and target not in seen:
                seen.add(target)
                result.append(target)
        if not result:
            raise ValueError("targets must contain at least one target")
        return result
