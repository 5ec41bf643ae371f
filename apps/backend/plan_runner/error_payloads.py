"""
Standardized error payloads for step failures.
"""

from __future__ import annotations

from .models import Step


def build_step_error_payload(step: Step) -> tuple[str, str]:
    failure = step.error
    reason = failure.message if failure else "Unknown error"
    content = f"{step.step_id} ({step.tool_name}) failed: {reason}"

    detail_lines = [f"Step: {step.step_id}", f"Tool: {step.tool_name}"]
    if failure:
        detail_lines.append(f"Error kind: {failure.kind.value}")
        if failure.retryable:
            detail_lines.append("Retryable: yes")
    if failure and failure.last_text is not None:
        detail_lines.append("")
        detail_lines.append("Last attempted text:")
        detail_lines.append(failure.last_text)
    if failure and failure.original_text is not None and failure.original_text != failure.last_text:
        detail_lines.append("")
        detail_lines.append("Original text:")
        detail_lines.append(failure.original_text)
    if step.attempts > 1:
        detail_lines.append("")
        detail_lines.append(f"Attempts: {step.attempts}")

    detail = "\n".join(detail_lines).strip()
    return content, detail
