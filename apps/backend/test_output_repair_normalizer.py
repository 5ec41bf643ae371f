import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(BACKEND_ROOT))

import pytest

from output_repair.text_normalizer import (
    normalize,
    remove_reasoning_tags,
    strip_ansi_codes,
    strip_line_number_prefixes,
)


def test_normalize_strips_leading_scaffolding():
    assert normalize('Here is the result: {"a": 1}') == '{"a": 1}'
    assert normalize("here are the steps: run it") == "run it"
    assert normalize("Based on the data: 42") == "42"


def test_normalize_unwraps_single_fenced_block():
    assert normalize('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert normalize("  ```\nplain\n```  \n") == "plain"


def test_normalize_strips_prefix_then_fence():
    raw = "Sure, here you go:\n```python\nprint('hi')\n```"
    assert normalize(raw) == "print('hi')"


def test_normalize_removes_prefix_hidden_behind_another():
    assert normalize("Let me check: Here is the file: body") == "body"


def test_normalize_leaves_fence_with_surrounding_text():
    raw = "Intro text\n```\ncode\n```"
    assert normalize(raw) == raw


def test_normalize_cleans_line_endings_and_control_chars():
    assert normalize("a\x00b\r\nc\x1b[31m!\x1b[0m") == "ab\nc!"


def test_normalize_without_prefix_stripping_returns_text_unchanged():
    raw = "Here is the x: keep\r\n\tline two\x00\r\n"
    assert normalize(raw, strip_prefixes=False) == raw
    assert normalize(None, strip_prefixes=False) == ""


def test_normalize_handles_empty_input():
    assert normalize("") == ""


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        'Here is the result: {"x": "line1\nline2"}',
        "OK, done: ```\nx\n```",
        "```\n```js\ninner\n```\n```",
        "Let me see: Okay, fine: Based on it: value",
        "\r\n\r\nThe content is below:\r\n```\r\ntext\r\n```",
        "\x1b\x1b[0m[0m tail",
    ],
)
def test_normalize_is_idempotent(raw):
    once = normalize(raw)
    assert normalize(once) == once
    verbatim = normalize(raw, strip_prefixes=False)
    assert normalize(verbatim, strip_prefixes=False) == verbatim


def test_strip_line_number_prefixes():
    assert strip_line_number_prefixes("  1→first\n  2→second") == "first\nsecond"
    assert strip_line_number_prefixes("no numbers\n 2→x") == "no numbers\n 2→x"


def test_remove_reasoning_tags():
    assert remove_reasoning_tags("<thinking>x</thinking> y") == "x y"


def test_normalize_drops_reasoning_tags_before_prefix():
    assert normalize("<thinking>\nHere is the result: {\"a\": 1}") == '{"a": 1}'


def test_strip_ansi_codes():
    assert strip_ansi_codes("\x1b[31mred\x1b[0m") == "red"
