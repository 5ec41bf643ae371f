"""
Web Content Profile
===================

Normalization for text ingested from uncontrolled web sources, as opposed to
generated output. Cleaning is guarded: when it would destroy most of the
content, the original text is returned unchanged.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup

from pipeline_config import (
    HTML_TEXT_MAX_CHARS,
    WEB_MAX_REDUCTION_RATIO,
    WEB_MIN_INPUT_LENGTH,
    WEB_MIN_OUTPUT_LENGTH,
)

logger = logging.getLogger(__name__)

NOISE_PATTERNS = [
    # Site navigation bars and footers
    re.compile(r"Home\s+My Books\s+Browse\s+▾[\s\S]*?More Genres", re.IGNORECASE | re.MULTILINE),
    re.compile(r"Company\s+About us[\s\S]*?© \d{4}[\s\S]*?$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"Welcome back\.\s+Just a moment while we sign you in", re.IGNORECASE | re.MULTILINE),
    re.compile(r"(?:Sign in|Sign up|Login|Register)\s+", re.IGNORECASE | re.MULTILINE),
    # Legal notices and ads
    re.compile(r"Cookie Policy|Privacy Policy|Terms of Service", re.IGNORECASE | re.MULTILINE),
    re.compile(r"\[Advertisement\]", re.IGNORECASE | re.MULTILINE),
    re.compile(r"Skip to (?:content|main)", re.IGNORECASE | re.MULTILINE),
]

UNWANTED_TAGS = ["script", "style", "nav", "footer", "header", "iframe", "noscript", "svg"]
HTML_MARKER_RE = re.compile(r"<(?:!doctype|html|body|div|article|main|p)\b", re.IGNORECASE)
TRUNCATION_MARKER = "\n\n[Content truncated...]"


def looks_like_html(text: str) -> bool:
    return bool(text) and HTML_MARKER_RE.search(text) is not None


def html_to_text(html: str, max_chars: int = HTML_TEXT_MAX_CHARS) -> str:
    """Extract the readable main text of an HTML page."""
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for tag_name in UNWANTED_TAGS:
        for element in soup.find_all(tag_name):
            element.decompose()

    main = soup.find("main") or soup.find("article") or soup.body or soup
    text = main.get_text("\n")
    lines = [line.strip() for line in text.split("\n")]
    text = "\n".join(line for line in lines if line)

    if len(text) > max_chars:
        logger.debug(f"Truncating extracted web text from {len(text)} to {max_chars} chars")
        text = text[:max_chars] + TRUNCATION_MARKER
    return text


def process_web_content(content: str) -> str:
    """Strip boilerplate from fetched web text.

    Returns the input unchanged when it is too short to be worth cleaning, or
    when cleaning removed too much of it.
    """
    original_length = len(content)
    if original_length < WEB_MIN_INPUT_LENGTH:
        logger.warning(
            f"Web content too short ({original_length} chars), likely an error page"
        )
        return content

    processed = content
    for pattern in NOISE_PATTERNS:
        processed = pattern.sub("", processed)

    processed = re.sub(r"\n{3,}", "\n\n", processed)
    processed = re.sub(r"\s{2,}", " ", processed)
    processed = processed.strip()

    processed_length = len(processed)
    reduction_ratio = 1 - (processed_length / original_length)
    logger.debug(
        f"Web content processed: {original_length} -> {processed_length} chars "
        f"({reduction_ratio * 100:.1f}% removed)"
    )

    if reduction_ratio > WEB_MAX_REDUCTION_RATIO:
        logger.warning("Web content over-filtered, returning original content")
        return content
    if processed_length < WEB_MIN_OUTPUT_LENGTH:
        logger.warning("Processed web content too short, returning original content")
        return content
    return processed
