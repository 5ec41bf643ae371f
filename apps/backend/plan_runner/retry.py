"""Bounded retry policy per error class."""

from __future__ import annotations

from dataclasses import dataclass, field

from pipeline_config import STEP_MAX_ATTEMPTS

from .errors import ErrorKind
from .models import Step


@dataclass(frozen=True)
class RetryPolicy:
    """Decide whether a failed step goes back to pending.

    A failure is retried only when its error is flagged retryable and its kind
    is allowed, which by default means tool invocation failures. Repair and
    placeholder failures would see the same raw text again, missing tools stay
    missing, and cancellation is always final.
    """

    max_attempts: int = STEP_MAX_ATTEMPTS
    retryable_kinds: frozenset[ErrorKind] = field(
        default_factory=lambda: frozenset({ErrorKind.TOOL_INVOCATION})
    )

    def should_retry(self, step: Step) -> bool:
        if step.error is None or not step.error.retryable:
            return False
        if step.error.kind not in self.retryable_kinds:
            return False
        return step.attempts < self.max_attempts


NO_RETRY = RetryPolicy(max_attempts=1)
