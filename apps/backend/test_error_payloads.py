import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(BACKEND_ROOT))

from plan_runner.errors import ErrorKind
from plan_runner.error_payloads import build_step_error_payload
from plan_runner.models import Step, StepFailure, StepStatus


def test_build_step_error_payload_includes_reason_and_details() -> None:
    step = Step(
        index=1,
        tool_name="str_replace",
        status=StepStatus.FAILED,
        attempts=2,
        error=StepFailure(
            kind=ErrorKind.REPAIR_FAILURE,
            message="Could not repair arguments as JSON",
            last_text='{"old_str": "a',
            original_text='Here is the edit: {"old_str": "a',
        ),
    )

    content, detail = build_step_error_payload(step)

    assert content == "step2 (str_replace) failed: Could not repair arguments as JSON"
    assert "Tool: str_replace" in detail
    assert "Error kind: repair_failure" in detail
    assert "Last attempted text:" in detail
    assert '{"old_str": "a' in detail
    assert "Original text:" in detail
    assert "Attempts: 2" in detail
    assert "Retryable" not in detail


def test_build_step_error_payload_without_error() -> None:
    step = Step(index=0, tool_name="lookup")

    content, detail = build_step_error_payload(step)

    assert content == "step1 (lookup) failed: Unknown error"
    assert detail == "Step: step1\nTool: lookup"
