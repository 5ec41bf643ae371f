import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(BACKEND_ROOT))

import json

import pytest

from output_repair.json_repair import (
    balance_braces,
    escape_newlines_in_strings,
    extract_embedded_json,
    remove_trailing_commas,
    repair_json,
)
from output_repair.payload import RepairStage


def test_valid_json_parses_directly():
    result = repair_json('{"a": [1, 2]}')
    assert result.ok
    assert result.value == {"a": [1, 2]}
    assert result.stage == RepairStage.DIRECT_PARSE


def test_extra_closing_brace_is_balanced():
    result = repair_json('{"a": 1}}')
    assert result.ok
    assert result.value == {"a": 1}
    assert result.stage == RepairStage.BRACE_BALANCE
    assert result.payload.text == '{"a": 1}'


def test_raw_newline_inside_string_is_escaped():
    result = repair_json('{"x": "line1\nline2"}')
    assert result.ok
    assert result.value == {"x": "line1\nline2"}
    assert result.stage == RepairStage.ESCAPE_NEWLINES


def test_trailing_commas_removed_outside_strings():
    result = repair_json('{"a": "x, ]", "b": [1,],}')
    assert result.ok
    assert result.value == {"a": "x, ]", "b": [1]}
    assert result.stage == RepairStage.TRAILING_COMMAS


def test_embedded_object_extracted_from_prose():
    result = repair_json('Result: {"ok": true} done')
    assert result.ok
    assert result.value == {"ok": True}
    assert result.stage == RepairStage.EXTRACT_EMBEDDED


def test_unrepairable_text_reports_failure():
    result = repair_json("not json at all")
    assert not result.ok
    assert result.failure.stage == RepairStage.DIRECT_PARSE
    assert result.failure.original == "not json at all"
    assert result.failure.text == "not json at all"
    assert result.failure.error


def test_failure_reports_last_stage_that_changed_text():
    result = repair_json('{"a": 1,,}')
    assert not result.ok
    assert result.failure.stage == RepairStage.TRAILING_COMMAS
    assert result.failure.text == '{"a": 1,}'
    assert result.failure.original == '{"a": 1,,}'


def test_non_standard_constants_are_rejected():
    assert not repair_json('{"a": NaN}').ok


def test_brace_balancing_terminates_on_closers_only():
    assert balance_braces("}}}}") == ""
    assert not repair_json("}}}}").ok


def test_balance_braces_only_touches_trailing_closers():
    assert balance_braces('{"a": {"b": 1}}') == '{"a": {"b": 1}}'
    assert balance_braces('{"a": 1} }\n}') == '{"a": 1}'
    assert balance_braces('{"a": "}"') == '{"a": "}"'


def test_escape_newlines_leaves_text_outside_strings():
    text = '{\n"a": "x\ny"\n}'
    assert escape_newlines_in_strings(text) == '{\n"a": "x\\ny"\n}'


def test_remove_trailing_commas_respects_escaped_quotes():
    text = '["a\\",]", 1,]'
    assert remove_trailing_commas(text) == '["a\\",]", 1]'


def test_extract_embedded_json_without_candidates():
    assert extract_embedded_json("plain") == "plain"


def test_repair_is_deterministic():
    samples = ['{"a": 1}}', 'x {"b": [1,]} y', "nope", '{"c": "1\n2"}']
    for sample in samples:
        assert repair_json(sample) == repair_json(sample)


@pytest.mark.parametrize(
    "text",
    [
        '{"a": 1}',
        "[1, 2, 3]",
        '"just a string"',
        "42",
        "null",
        '{"nested": {"list": [{"k": "v,}"}]}, "u": "\\u00e9"}',
        '  {"padded": true}  ',
    ],
)
def test_valid_json_is_never_mutated(text):
    result = repair_json(text)
    assert result.ok
    assert result.value == json.loads(text)
    assert result.stage == RepairStage.DIRECT_PARSE
