"""
Structural Repairer
===================

Bounded, deterministic fix-ups for text expected to hold a single JSON value.

Each stage runs only when the previous parse attempt failed, and works on the
output of the stage before it. Stages fix structure and escaping only; they
never rename keys or coerce values, so already valid JSON parses exactly as a
direct ``json.loads`` would.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable

from .payload import CandidatePayload, PayloadShape, RepairFailure, RepairResult, RepairStage

logger = logging.getLogger(__name__)

# A JSON string literal, honoring backslash-escaped characters
STRING_LITERAL_RE = re.compile(r'"([^"\\]*(?:\\.[^"\\]*)*)"')

_CLOSERS = {"{": "}", "[": "]"}


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_strict(text: str) -> Any:
    """Parse with JSON's own grammar: no NaN/Infinity, no raw control chars in strings."""
    return json.loads(text, parse_constant=_reject_constant)


def balance_braces(text: str) -> str:
    """Strip trailing ``}`` while closing braces outnumber opening ones."""
    open_count = text.count("{")
    close_count = text.count("}")
    if close_count <= open_count:
        return text

    fixed = text.strip()
    while close_count > open_count and fixed.endswith("}"):
        fixed = fixed[:-1].strip()
        close_count = fixed.count("}")
    return fixed


def escape_newlines_in_strings(text: str) -> str:
    """Escape raw CR/LF characters inside string literals only."""

    def _escape(match: re.Match) -> str:
        content = match.group(1).replace("\n", "\\n").replace("\r", "\\r")
        return f'"{content}"'

    return STRING_LITERAL_RE.sub(_escape, text)


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede ``}`` or ``]`` outside string literals."""
    result: list[str] = []
    in_string = False
    escape_next = False
    length = len(text)

    for index, char in enumerate(text):
        if escape_next:
            escape_next = False
            result.append(char)
            continue
        if in_string:
            if char == "\\":
                escape_next = True
            elif char == '"':
                in_string = False
            result.append(char)
            continue
        if char == '"':
            in_string = True
        elif char == ",":
            lookahead = index + 1
            while lookahead < length and text[lookahead].isspace():
                lookahead += 1
            if lookahead < length and text[lookahead] in "}]":
                continue
        result.append(char)

    return "".join(result)


def extract_embedded_json(text: str) -> str:
    """Slice the outermost object or array out of surrounding prose."""
    starts = [pos for pos in (text.find("{"), text.find("[")) if pos != -1]
    if not starts:
        return text
    start = min(starts)
    end = text.rfind(_CLOSERS[text[start]])
    if end <= start:
        return text
    return text[start : end + 1]


REPAIR_STAGES: list[tuple[RepairStage, Callable[[str], str]]] = [
    (RepairStage.BRACE_BALANCE, balance_braces),
    (RepairStage.ESCAPE_NEWLINES, escape_newlines_in_strings),
    (RepairStage.TRAILING_COMMAS, remove_trailing_commas),
    (RepairStage.EXTRACT_EMBEDDED, extract_embedded_json),
]


def repair_json(text: str) -> RepairResult:
    """Parse ``text`` as JSON, repairing structural defects stage by stage.

    Args:
        text: Normalized text expected to contain one JSON value

    Returns:
        RepairResult holding the parsed value and the stage that made it
        parse, or a RepairFailure with the last attempted text and the last
        stage that changed it (direct_parse when none did).
    """
    payload = CandidatePayload(text=text, shape=PayloadShape.JSON_VALUE)
    current = text
    stage = last_changed = RepairStage.DIRECT_PARSE

    try:
        return RepairResult.success(payload, parse_strict(current), stage)
    except ValueError as exc:
        last_error = str(exc)

    for stage, repair in REPAIR_STAGES:
        repaired = repair(current)
        if repaired == current:
            continue
        current = repaired
        last_changed = stage
        logger.debug(f"Repair stage {stage.value} changed the text, re-parsing")
        try:
            value = parse_strict(current)
        except ValueError as exc:
            last_error = str(exc)
            continue
        return RepairResult.success(payload.with_text(current), value, stage)

    logger.debug(f"JSON repair exhausted, last change by {last_changed.value}: {last_error}")
    failure = RepairFailure(text=current, original=text, stage=last_changed, error=last_error)
    return RepairResult.failed(payload.with_text(current), failure)
