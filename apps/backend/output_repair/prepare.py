"""Route a candidate payload through the normalizer profile and repairer its shape calls for."""

from __future__ import annotations

import logging
from dataclasses import replace

from .json_repair import repair_json
from .payload import CandidatePayload, PayloadShape, RepairResult
from .text_normalizer import normalize, strip_line_number_prefixes
from .web_content import html_to_text, looks_like_html, process_web_content

logger = logging.getLogger(__name__)


def prepare_payload(payload: CandidatePayload) -> RepairResult:
    """Normalize ``payload`` per its shape and parse it when it holds JSON.

    Verbatim payloads are only stripped of read-file line numbers, so their
    line endings and whitespace survive byte-for-byte.
    """
    if payload.shape == PayloadShape.WEB_TEXT:
        text = payload.text
        if looks_like_html(text):
            text = html_to_text(text)
        text = process_web_content(text)
        return RepairResult.success(payload.with_text(text), text)

    normalized = normalize(payload.text, strip_prefixes=not payload.verbatim)
    if payload.verbatim:
        normalized = strip_line_number_prefixes(normalized)
    if payload.shape == PayloadShape.FREE_TEXT:
        return RepairResult.success(payload.with_text(normalized), normalized)

    result = repair_json(normalized)
    if result.ok:
        return RepairResult.success(
            replace(result.payload, verbatim=payload.verbatim), result.value, result.stage
        )

    logger.debug(f"JSON payload could not be repaired (last stage: {result.stage.value})")
    failure = replace(result.failure, original=payload.text)
    return RepairResult.failed(replace(result.payload, verbatim=payload.verbatim), failure)
