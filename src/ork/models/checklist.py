"""Checklist, action and checklist-run data models."""

from __future__ import annotations

from typing import Annotated, ClassVar, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _ActionBase(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    default_timeout_ms: ClassVar[int] = 5000

    # Milliseconds; falls back to the per-type default.
    timeout: Optional[int] = Field(default=None, gt=0)

    @property
    def timeout_ms(self) -> int:
        return self.timeout or self.default_timeout_ms


class NavigateAction(_ActionBase):
    default_timeout_ms: ClassVar[int] = 30000

    type: Literal["navigate"]
    url: str = ""


class ClickAction(_ActionBase):
    type: Literal["click"]
    selector: str = Field(min_length=1)


class TypeAction(_ActionBase):
    type: Literal["type"]
    selector: str = Field(min_length=1)
    text: str


class SelectAction(_ActionBase):
    type: Literal["select"]
    selector: str = Field(min_length=1)
    value: str = Field(min_length=1)


class WaitForAction(_ActionBase):
    default_timeout_ms: ClassVar[int] = 10000

    type: Literal["wait_for"]
    selector: str = Field(min_length=1)


class AssertTextAction(_ActionBase):
    type: Literal["assert_text"]
    selector: str = Field(min_length=1)
    text: str = Field(min_length=1)


class AssertUrlAction(_ActionBase):
    type: Literal["assert_url"]
    contains: str = Field(min_length=1)


class ScreenshotAction(_ActionBase):
    type: Literal["screenshot"]
    name: str = Field(min_length=1, pattern=r"^[^/\\]+$")


class HoverAction(_ActionBase):
    type: Literal["hover"]
    selector: str = Field(min_length=1)


Action = Annotated[
    Union[
        NavigateAction,
        ClickAction,
        TypeAction,
        SelectAction,
        WaitForAction,
        AssertTextAction,
        AssertUrlAction,
        ScreenshotAction,
        HoverAction,
    ],
    Field(discriminator="type"),
]


class Checkpoint(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(min_length=1)
    description: str = ""
    actions: list[Action] = []


class Checklist(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(min_length=1)
    description: str = ""
    base_url: str = Field(min_length=1)
    checkpoints: list[Checkpoint]


class CheckpointFailure(BaseModel):
    checkpoint: str
    description: str = ""
    error: str


class RunResult(BaseModel):
    """Outcome of one checklist run, serialized as ``result.json``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    success: bool
    checkpoints_passed: int = Field(alias="checkpointsPassed", ge=0)
    checkpoints_total: int = Field(alias="checkpointsTotal", ge=0)
    failures: list[CheckpointFailure] = []
    screenshot_dir: str = Field(alias="screenshotDir")
    timestamp: str

    @model_validator(mode="after")
    def _check_counts(self) -> RunResult:
        if self.checkpoints_passed > self.checkpoints_total:
            raise ValueError("checkpointsPassed cannot exceed checkpointsTotal")
        if self.success != (not self.failures):
            raise ValueError("success must be true exactly when there are no failures")
        return self

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    @classmethod
    def from_json(cls, data: str) -> RunResult:
        return cls.model_validate_json(data)
