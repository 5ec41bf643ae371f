"""
Plan Runner
===========

Drives a plan to a terminal status. Steps run strictly in order, one at a
time; the awaited tool call is the only suspension point. Step-level errors
are captured on the step and never raised past ``run``.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Mapping

from .arguments import prepare_arguments
from .error_payloads import build_step_error_payload
from .errors import (
    ArgumentPreparationError,
    InvalidTransitionError,
    StepCancelledError,
    StepError,
    ToolInvocationError,
)
from .models import (
    Plan,
    PlanFailure,
    PlanOutcome,
    PlanStatus,
    ProgressEvent,
    Step,
    StepStatus,
)
from .progress import ProgressSink
from .registry import ToolRegistry, invoke_tool
from .retry import RetryPolicy
from .state_machine import StepStateMachine

logger = logging.getLogger(__name__)


class CancellationToken:
    """Out-of-band cancellation flag for one plan. May be set from any thread."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = ""

    def cancel(self, reason: str = "Cancellation requested") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def _returned_error(result: Any) -> str | None:
    if isinstance(result, Mapping) and result.get("success") is False:
        return str(result.get("error") or "Tool reported failure")
    return None


class PlanRunner:
    def __init__(
        self,
        registry: ToolRegistry,
        sink: ProgressSink | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self.registry = registry
        self.sink = sink
        self.retry_policy = retry_policy or RetryPolicy()

    async def run(self, plan: Plan, cancel_token: CancellationToken | None = None) -> PlanOutcome:
        """Run ``plan`` until it completes, fails, or is cancelled.

        Args:
            plan: Plan owned exclusively by this call until it returns
            cancel_token: Optional token checked before each dispatch and
                before each tool invocation

        Returns:
            PlanOutcome with the terminal status, failure cause, completed
            step results, and every emitted ProgressEvent in order.
        """
        if plan.is_terminal:
            raise InvalidTransitionError(f"Plan {plan.plan_id} is already {plan.status.value}")

        token = cancel_token or CancellationToken()
        events: list[ProgressEvent] = []

        def emit(event: ProgressEvent) -> None:
            events.append(event)
            if self.sink is None:
                return
            try:
                self.sink.on_event(event)
            except Exception as exc:
                logger.warning(f"Progress sink failed on {event.step_id}: {exc}")

        logger.info(f"Running plan {plan.plan_id} ({len(plan.steps)} steps)")

        while not plan.is_terminal:
            step = plan.current_step()
            if step is None:
                self._finish(plan, PlanStatus.COMPLETED)
                break
            if token.cancelled:
                logger.info(f"Plan {plan.plan_id} cancelled before {step.step_id}: {token.reason}")
                self._finish(plan, PlanStatus.CANCELLED)
                break

            machine = StepStateMachine(plan, step, emit)
            await self._run_step(step, machine, plan, token)

            if step.status == StepStatus.COMPLETED:
                plan.cursor += 1
            elif step.status == StepStatus.CANCELLED:
                self._finish(plan, PlanStatus.CANCELLED)
            elif self.retry_policy.should_retry(step):
                if token.cancelled:
                    self._finish(plan, PlanStatus.CANCELLED)
                else:
                    logger.info(f"Retrying {step.step_id} ({step.tool_name}): {step.error.message}")
                    machine.retry()
            else:
                _, detail = build_step_error_payload(step)
                logger.debug(f"Step failure detail:\n{detail}")
                self._finish(plan, PlanStatus.FAILED, self._failure_for(step))

        return PlanOutcome(
            plan_id=plan.plan_id,
            status=plan.status,
            failure=plan.failure,
            results=plan.completed_results(),
            events=events,
        )

    async def _run_step(
        self,
        step: Step,
        machine: StepStateMachine,
        plan: Plan,
        token: CancellationToken,
    ) -> None:
        machine.dispatch()

        try:
            arguments = prepare_arguments(step, plan.completed_results())
            tool_fn = self.registry.resolve(step.tool_name)
        except StepError as exc:
            logger.warning(f"{step.step_id} failed while preparing: {exc.message}")
            machine.fail_preparation(exc)
            return
        except Exception as exc:
            logger.warning(f"{step.step_id} raised while preparing: {type(exc).__name__}: {exc}")
            machine.fail_preparation(
                ArgumentPreparationError(
                    f"Preparing {step.tool_name} raised {type(exc).__name__}: {exc}",
                    exception_type=type(exc).__name__,
                )
            )
            return

        if token.cancelled:
            machine.cancel(f"Cancelled before invoking {step.tool_name}: {token.reason}")
            return

        machine.begin_execution()

        error: StepError | None = None
        result: Any = None
        try:
            result = await invoke_tool(tool_fn, arguments)
        except StepError as exc:
            error = exc
        except Exception as exc:
            error = ToolInvocationError(
                f"{step.tool_name} raised {type(exc).__name__}: {exc}",
                exception_type=type(exc).__name__,
            )

        if token.cancelled:
            if error is None:
                logger.debug(f"Discarding late result of {step.step_id} after cancellation")
            machine.cancel(f"Cancelled while {step.tool_name} was running: {token.reason}")
            return
        if isinstance(error, StepCancelledError):
            machine.cancel(error.message)
            return

        if error is None:
            message = _returned_error(result)
            if message is not None:
                error = ToolInvocationError(f"{step.tool_name} returned an error: {message}")

        if error is not None:
            logger.warning(f"{step.step_id} attempt {step.attempts} failed: {error.message}")
            machine.fail(error)
            return

        machine.complete(result)

    @staticmethod
    def _failure_for(step: Step) -> PlanFailure:
        failure = step.error
        return PlanFailure(
            step_index=step.index,
            step_id=step.step_id,
            tool_name=step.tool_name,
            kind=failure.kind,
            message=failure.message,
        )

    @staticmethod
    def _finish(plan: Plan, status: PlanStatus, failure: PlanFailure | None = None) -> None:
        plan.status = status
        plan.failure = failure
        if failure is not None:
            logger.warning(
                f"Plan {plan.plan_id} failed at {failure.step_id} ({failure.kind.value}): {failure.message}"
            )
        else:
            logger.info(f"Plan {plan.plan_id} {status.value}")


def run_plan(
    plan: Plan,
    registry: ToolRegistry,
    sink: ProgressSink | None = None,
    retry_policy: RetryPolicy | None = None,
    cancel_token: CancellationToken | None = None,
) -> PlanOutcome:
    """Blocking convenience wrapper around PlanRunner.run."""
    runner = PlanRunner(registry, sink=sink, retry_policy=retry_policy)
    return asyncio.run(runner.run(plan, cancel_token))
