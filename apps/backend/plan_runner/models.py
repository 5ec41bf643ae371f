"""
Plan Models
===========

Pydantic models for plans, steps, and progress events.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from output_repair import PayloadShape
from pipeline_config import VERBATIM_ARGUMENTS

from .errors import ErrorKind, RepairFailedError, StepError


class StepStatus(str, Enum):
    PENDING = "pending"
    PREPARING = "preparing"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STEP_STATUSES = frozenset(
    {StepStatus.COMPLETED, StepStatus.FAILED, StepStatus.CANCELLED}
)


class PlanStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class StepFailure(BaseModel):
    """Why a step failed, as recorded on the step."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    retryable: bool = False
    last_text: Optional[str] = Field(None, description="Last attempted text for repair failures")
    original_text: Optional[str] = Field(None, description="Text before any repair")
    details: dict = Field(default_factory=dict)

    @classmethod
    def from_error(cls, error: StepError) -> "StepFailure":
        last_text = original_text = None
        if isinstance(error, RepairFailedError):
            last_text = error.failure.text
            original_text = error.failure.original
        return cls(
            kind=error.kind,
            message=error.message,
            retryable=error.retryable,
            last_text=last_text,
            original_text=original_text,
            details=dict(error.details),
        )


class Step(BaseModel):
    """One tool invocation within a plan.

    Identity (index, tool_name) is fixed; status is changed only through
    StepStateMachine.
    """

    index: int = Field(..., ge=0, frozen=True)
    tool_name: str = Field(..., min_length=1, frozen=True)
    arguments: Any = Field(None, description="Raw string or mapping of argument name to value")
    payload_shape: PayloadShape = Field(
        PayloadShape.JSON_VALUE, description="Shape of arguments when given as one raw string"
    )
    argument_shapes: dict[str, PayloadShape] = Field(default_factory=dict)
    verbatim_arguments: List[str] = Field(default_factory=lambda: list(VERBATIM_ARGUMENTS))
    description: str = ""

    status: StepStatus = StepStatus.PENDING
    attempts: int = 1
    result: Any = None
    error: Optional[StepFailure] = None

    @property
    def step_id(self) -> str:
        return f"step{self.index + 1}"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STEP_STATUSES


class ProgressEvent(BaseModel):
    """Immutable record of one step status transition."""

    model_config = ConfigDict(frozen=True)

    plan_id: str
    step_id: str
    step_index: int
    tool_name: str
    from_status: StepStatus
    status: StepStatus
    attempt: int
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PlanFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    step_index: int
    step_id: str
    tool_name: str
    kind: ErrorKind
    message: str


class Plan(BaseModel):
    """An ordered, sequentially executed list of steps."""

    plan_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    goal: str = ""
    steps: List[Step] = Field(default_factory=list)
    cursor: int = 0
    status: PlanStatus = PlanStatus.RUNNING
    failure: Optional[PlanFailure] = None

    @model_validator(mode="after")
    def _check_step_indices(self) -> "Plan":
        for position, step in enumerate(self.steps):
            if step.index != position:
                raise ValueError(
                    f"Step '{step.tool_name}' has index {step.index}, expected {position}"
                )
        return self

    @classmethod
    def from_steps(cls, steps: List[dict], goal: str = "", **kwargs: Any) -> "Plan":
        """Build a plan from step specs ({"tool_name": ..., "arguments": ...})."""
        return cls(
            goal=goal,
            steps=[Step(index=i, **spec) for i, spec in enumerate(steps)],
            **kwargs,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status != PlanStatus.RUNNING

    def current_step(self) -> Optional[Step]:
        if 0 <= self.cursor < len(self.steps):
            return self.steps[self.cursor]
        return None

    def completed_results(self) -> dict[str, Any]:
        return {
            step.step_id: step.result
            for step in self.steps
            if step.status == StepStatus.COMPLETED
        }

    def progress(self) -> dict[str, Any]:
        total = len(self.steps)
        counts = {
            status: len([s for s in self.steps if s.status == status])
            for status in (StepStatus.COMPLETED, StepStatus.FAILED, StepStatus.CANCELLED)
        }
        completed = counts[StepStatus.COMPLETED]
        return {
            "total_steps": total,
            "completed_steps": completed,
            "failed_steps": counts[StepStatus.FAILED],
            "cancelled_steps": counts[StepStatus.CANCELLED],
            "progress_percent": (completed / total * 100) if total > 0 else 0,
            "status": self.status.value,
        }


class PlanOutcome(BaseModel):
    """Single terminal result handed back to the caller of PlanRunner.run."""

    model_config = ConfigDict(frozen=True)

    plan_id: str
    status: PlanStatus
    failure: Optional[PlanFailure] = None
    results: dict[str, Any] = Field(default_factory=dict)
    events: List[ProgressEvent] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == PlanStatus.COMPLETED
