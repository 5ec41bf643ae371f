"""Deterministic normalization and repair of generated text."""

from .json_repair import repair_json
from .payload import CandidatePayload, PayloadShape, RepairFailure, RepairResult, RepairStage
from .prepare import prepare_payload
from .text_normalizer import normalize
from .web_content import html_to_text, process_web_content

__all__ = [
    "CandidatePayload",
    "PayloadShape",
    "RepairFailure",
    "RepairResult",
    "RepairStage",
    "html_to_text",
    "normalize",
    "prepare_payload",
    "process_web_content",
    "repair_json",
]
