"""
Step State Machine
==================

Owns the lifecycle of one step:

    pending -> preparing -> executing -> completed | failed | cancelled

``failed -> pending`` is the retry edge, open only while the plan is still
running. ``preparing -> cancelled`` covers cancellation observed at the
boundary before tool invocation. Every transition emits exactly one
ProgressEvent before returning.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .errors import InvalidTransitionError, StepError
from .models import Plan, ProgressEvent, Step, StepFailure, StepStatus

logger = logging.getLogger(__name__)

TRANSITIONS: dict[tuple[StepStatus, str], StepStatus] = {
    (StepStatus.PENDING, "dispatch"): StepStatus.PREPARING,
    (StepStatus.PREPARING, "arguments_ready"): StepStatus.EXECUTING,
    (StepStatus.PREPARING, "preparation_failed"): StepStatus.FAILED,
    (StepStatus.PREPARING, "cancel"): StepStatus.CANCELLED,
    (StepStatus.EXECUTING, "succeed"): StepStatus.COMPLETED,
    (StepStatus.EXECUTING, "fail"): StepStatus.FAILED,
    (StepStatus.EXECUTING, "cancel"): StepStatus.CANCELLED,
    (StepStatus.FAILED, "retry"): StepStatus.PENDING,
}


class StepStateMachine:
    def __init__(self, plan: Plan, step: Step, emit: Callable[[ProgressEvent], None]):
        self.plan = plan
        self.step = step
        self._emit = emit

    def can(self, event: str) -> bool:
        return (self.step.status, event) in TRANSITIONS and not self.plan.is_terminal

    def _transition(self, event: str, message: str | None = None) -> ProgressEvent:
        previous = self.step.status
        target = TRANSITIONS.get((previous, event))
        if target is None:
            raise InvalidTransitionError(
                f"{self.step.step_id}: cannot '{event}' from {previous.value}"
            )
        if self.plan.is_terminal:
            raise InvalidTransitionError(
                f"{self.step.step_id}: plan {self.plan.plan_id} is already {self.plan.status.value}"
            )

        self.step.status = target
        progress_event = ProgressEvent(
            plan_id=self.plan.plan_id,
            step_id=self.step.step_id,
            step_index=self.step.index,
            tool_name=self.step.tool_name,
            from_status=previous,
            status=target,
            attempt=self.step.attempts,
            message=message,
        )
        logger.debug(
            f"{self.step.step_id} ({self.step.tool_name}): {previous.value} -> {target.value}"
        )
        self._emit(progress_event)
        return progress_event

    def dispatch(self) -> ProgressEvent:
        return self._transition("dispatch", f"Preparing arguments for {self.step.tool_name}")

    def begin_execution(self) -> ProgressEvent:
        return self._transition("arguments_ready", f"Invoking {self.step.tool_name}")

    def fail_preparation(self, error: StepError) -> ProgressEvent:
        self.step.error = StepFailure.from_error(error)
        return self._transition("preparation_failed", error.message)

    def complete(self, result: Any) -> ProgressEvent:
        self.step.result = result
        self.step.error = None
        return self._transition("succeed", f"{self.step.tool_name} completed")

    def fail(self, error: StepError) -> ProgressEvent:
        self.step.error = StepFailure.from_error(error)
        return self._transition("fail", error.message)

    def cancel(self, message: str = "Cancellation requested") -> ProgressEvent:
        return self._transition("cancel", message)

    def retry(self) -> ProgressEvent:
        previous_error = self.step.error.message if self.step.error else "unknown error"
        if self.can("retry"):
            self.step.attempts += 1
            self.step.error = None
        return self._transition(
            "retry", f"Retrying (attempt {self.step.attempts}) after: {previous_error}"
        )
