"""
Text Normalizer
===============

Cleans free-form model output before it is treated as a payload.

``normalize`` is total and idempotent. The ordered steps (reasoning tags,
prefix scaffolding, code fence unwrapping, trimming) repeat until nothing changes, so a prefix
hidden behind another prefix or a fence is still removed on the first call.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# Conversational scaffolding, matched only at the start, up to the first colon.
SCAFFOLDING_PATTERNS = [
    re.compile(r"^Here (?:is|are) the .*?:\s*", re.IGNORECASE),
    re.compile(r"^(?:The|This) (?:code|content|text|file) .*?:\s*", re.IGNORECASE),
    re.compile(r"^I(?:'ll| will) (?:create|add|modify|replace) .*?:\s*", re.IGNORECASE),
    re.compile(r"^Let me .*?:\s*", re.IGNORECASE),
    re.compile(r"^(?:Sure|OK|Okay),? .*?:\s*", re.IGNORECASE),
    re.compile(r"^Based on .*?:\s*", re.IGNORECASE),
]

CODE_FENCE_RE = re.compile(r"^```(?:[\w+#.-]+)?[ \t]*\n(.*?)\n```\s*$", re.DOTALL)
CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")
REASONING_TAG_RE = re.compile(r"</?(?:thinking|thought|reflection|analysis|reasoning)>")
LINE_NUMBER_PREFIX_RE = re.compile(r"^\s*\d+→")


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def strip_ansi_codes(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def strip_control_characters(text: str) -> str:
    """Remove non-printable control characters, keeping newlines and tabs."""
    return CONTROL_CHARS_RE.sub("", text)


def strip_conversational_prefix(text: str) -> str:
    cleaned = text
    for pattern in SCAFFOLDING_PATTERNS:
        cleaned = pattern.sub("", cleaned, count=1)
    if cleaned != text:
        logger.debug(f"Stripped conversational prefix ({len(text) - len(cleaned)} chars)")
    return cleaned


def unwrap_code_fence(text: str) -> str:
    """Return the fenced content if the whole text is a single fenced block."""
    match = CODE_FENCE_RE.match(text.strip())
    if not match:
        return text
    return match.group(1)


def normalize(raw: str, strip_prefixes: bool = True) -> str:
    """Normalize model output.

    Args:
        raw: Text as produced by the model
        strip_prefixes: When False, the text is returned unchanged; use this
            for arguments that must match existing content byte-for-byte.

    Returns:
        Cleaned text
    """
    if not strip_prefixes:
        return raw or ""

    text = normalize_line_endings(raw or "")
    text = strip_control_characters(strip_ansi_codes(text))

    while True:
        previous = text
        text = remove_reasoning_tags(text)
        text = strip_conversational_prefix(text)
        text = unwrap_code_fence(text)
        text = text.strip()
        if text == previous:
            return text


def remove_reasoning_tags(text: str) -> str:
    """Drop XML-style reasoning markers, keeping their inner text."""
    if not text:
        return text
    return REASONING_TAG_RE.sub("", text).strip()


def strip_line_number_prefixes(text: str) -> str:
    """Remove read-file style line numbers ("  12→") from every line.

    Only applies when the first line carries a prefix.
    """
    if not text or not LINE_NUMBER_PREFIX_RE.match(text):
        return text
    lines = text.split("\n")
    logger.debug(f"Removing line number prefixes from {len(lines)} lines")
    return "\n".join(LINE_NUMBER_PREFIX_RE.sub("", line, count=1) for line in lines)

