"""Sequential step execution with lifecycle tracking, retry, and cancellation."""

from .error_payloads import build_step_error_payload
from .errors import (
    ArgumentPreparationError,
    ErrorKind,
    InvalidTransitionError,
    PlaceholderResolutionError,
    RepairFailedError,
    StepCancelledError,
    StepError,
    ToolInvocationError,
    ToolNotFoundError,
)
from .models import (
    Plan,
    PlanFailure,
    PlanOutcome,
    PlanStatus,
    ProgressEvent,
    Step,
    StepFailure,
    StepStatus,
)
from .progress import (
    CompositeProgressSink,
    FileProgressSink,
    InMemoryProgressSink,
    LoggingProgressSink,
    ProgressSink,
)
from .registry import ToolRegistry, with_timeout
from .retry import NO_RETRY, RetryPolicy
from .runner import CancellationToken, PlanRunner, run_plan
from .state_machine import StepStateMachine

__all__ = [
    "ArgumentPreparationError",
    "CancellationToken",
    "CompositeProgressSink",
    "ErrorKind",
    "FileProgressSink",
    "InMemoryProgressSink",
    "InvalidTransitionError",
    "LoggingProgressSink",
    "NO_RETRY",
    "PlaceholderResolutionError",
    "Plan",
    "PlanFailure",
    "PlanOutcome",
    "PlanRunner",
    "PlanStatus",
    "ProgressEvent",
    "ProgressSink",
    "RepairFailedError",
    "RetryPolicy",
    "Step",
    "StepCancelledError",
    "StepError",
    "StepFailure",
    "StepStateMachine",
    "StepStatus",
    "ToolInvocationError",
    "ToolNotFoundError",
    "ToolRegistry",
    "build_step_error_payload",
    "run_plan",
    "with_timeout",
]
