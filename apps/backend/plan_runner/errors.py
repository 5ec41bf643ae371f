"""
Step Errors
===========

Failures captured at the step level. None of these escape PlanRunner.run;
the runner records them on the step and turns a permanent one into the
plan's failure cause.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from output_repair import RepairFailure


class ErrorKind(str, Enum):
    REPAIR_FAILURE = "repair_failure"
    PLACEHOLDER = "placeholder"
    PREPARATION = "preparation"
    TOOL_NOT_FOUND = "tool_not_found"
    TOOL_INVOCATION = "tool_invocation"
    CANCELLED = "cancelled"


class StepError(Exception):
    kind: ErrorKind = ErrorKind.TOOL_INVOCATION
    retryable = False

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details


class RepairFailedError(StepError):
    kind = ErrorKind.REPAIR_FAILURE

    def __init__(self, argument: str | None, failure: RepairFailure):
        target = f"argument '{argument}'" if argument else "arguments"
        super().__init__(
            f"Could not repair {target} as JSON after {failure.stage.value}: {failure.error}",
            argument=argument,
            stage=failure.stage.value,
        )
        self.failure = failure


class PlaceholderResolutionError(StepError):
    kind = ErrorKind.PLACEHOLDER

    def __init__(self, placeholder: str, reason: str, available_fields: list[str] | None = None):
        available = list(available_fields or [])
        message = f"Cannot resolve {placeholder}: {reason}"
        if available:
            message += f" (available fields: {', '.join(available)})"
        super().__init__(message, placeholder=placeholder, available_fields=available)
        self.placeholder = placeholder
        self.available_fields = available


class ArgumentPreparationError(StepError):
    """Unexpected failure while preparing arguments or resolving the tool."""

    kind = ErrorKind.PREPARATION


class ToolNotFoundError(StepError):
    kind = ErrorKind.TOOL_NOT_FOUND

    def __init__(self, tool_name: str):
        super().__init__(f"Tool '{tool_name}' not found", tool_name=tool_name)
        self.tool_name = tool_name


class ToolInvocationError(StepError):
    kind = ErrorKind.TOOL_INVOCATION
    retryable = True


class StepCancelledError(StepError):
    kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "Cancellation requested"):
        super().__init__(message)


class InvalidTransitionError(RuntimeError):
    """A status change the step lifecycle does not allow."""
