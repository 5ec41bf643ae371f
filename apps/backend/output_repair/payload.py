"""Candidate payload and repair result types."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any


class PayloadShape(str, Enum):
    FREE_TEXT = "free_text"
    WEB_TEXT = "web_text"
    JSON_VALUE = "json_value"


class RepairStage(str, Enum):
    """Stages of the structural repairer, in the order they run."""

    DIRECT_PARSE = "direct_parse"
    BRACE_BALANCE = "brace_balance"
    ESCAPE_NEWLINES = "escape_newlines"
    TRAILING_COMMAS = "trailing_commas"
    EXTRACT_EMBEDDED = "extract_embedded"


@dataclass(frozen=True)
class CandidatePayload:
    text: str
    shape: PayloadShape = PayloadShape.FREE_TEXT
    # Skip prefix/fence stripping; for content matched byte-for-byte elsewhere.
    verbatim: bool = False

    def with_text(self, text: str) -> CandidatePayload:
        return replace(self, text=text)


@dataclass(frozen=True)
class RepairFailure:
    """Terminal repair outcome.

    ``text`` is the text as it stood after ``stage`` ran, ``original`` is the
    text before any repair so callers can surface it unchanged.
    """

    text: str
    original: str
    stage: RepairStage
    error: str = ""


@dataclass(frozen=True)
class RepairResult:
    payload: CandidatePayload
    value: Any = None
    failure: RepairFailure | None = None
    stage: RepairStage | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(
        cls,
        payload: CandidatePayload,
        value: Any,
        stage: RepairStage | None = None,
    ) -> RepairResult:
        return cls(payload=payload, value=value, stage=stage)

    @classmethod
    def failed(cls, payload: CandidatePayload, failure: RepairFailure) -> RepairResult:
        return cls(payload=payload, failure=failure, stage=failure.stage)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "ok": self.ok,
            "shape": self.payload.shape.value,
            "stage": self.stage.value if self.stage else None,
        }
        if self.failure is None:
            data["value"] = self.value
        else:
            data["error"] = self.failure.error
            data["text"] = self.failure.text
            data["original"] = self.failure.original
        return data
