"""
Argument Preparation
====================

Turns a step's raw arguments into call arguments: each declared payload goes
through output_repair, then ``{{stepN.result...}}`` references to earlier
completed steps are substituted.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping

from output_repair import CandidatePayload, prepare_payload

from .errors import PlaceholderResolutionError, RepairFailedError
from .models import Step

logger = logging.getLogger(__name__)

# {{step2.result}}, {{step1.output.path}}, {{step3.tool_result.items.0}}
PLACEHOLDER_RE = re.compile(r"\{\{(step\d+)\.(?:output|result|tool_result)(?:\.([^}]+))?\}\}")


def _repair_argument(name: str | None, raw: str, step: Step, shape) -> Any:
    verbatim = name is not None and name in step.verbatim_arguments
    result = prepare_payload(CandidatePayload(text=raw, shape=shape, verbatim=verbatim))
    if not result.ok:
        raise RepairFailedError(name, result.failure)
    return result.value


def repair_arguments(step: Step) -> Any:
    """Normalize/repair the declared payloads of ``step``.

    A raw string is prepared as a whole using ``step.payload_shape``. In a
    mapping only string values with an entry in ``step.argument_shapes`` are
    prepared; everything else passes through untouched.
    """
    arguments = step.arguments
    if isinstance(arguments, str):
        return _repair_argument(None, arguments, step, step.payload_shape)
    if isinstance(arguments, Mapping):
        prepared = {}
        for name, raw in arguments.items():
            shape = step.argument_shapes.get(name)
            if shape is not None and isinstance(raw, str):
                prepared[name] = _repair_argument(name, raw, step, shape)
            else:
                prepared[name] = raw
        return prepared
    return arguments


def _lookup(placeholder: str, step_ref: str, path: str | None, results: Mapping[str, Any]) -> Any:
    if step_ref not in results:
        raise PlaceholderResolutionError(
            placeholder, f"{step_ref} has no completed result", sorted(results)
        )
    value = results[step_ref]
    if not path:
        return value

    for part in path.split("."):
        if isinstance(value, Mapping) and part in value:
            value = value[part]
        elif isinstance(value, list) and part.isdigit() and int(part) < len(value):
            value = value[int(part)]
        else:
            available = [str(key) for key in value] if isinstance(value, Mapping) else []
            raise PlaceholderResolutionError(placeholder, f"field '{part}' not found", available)
    return value


def _value_to_string(placeholder: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError) as exc:
        raise PlaceholderResolutionError(placeholder, f"value cannot be rendered as text: {exc}") from exc


def _resolve_string(text: str, results: Mapping[str, Any]) -> Any:
    matches = list(PLACEHOLDER_RE.finditer(text))
    if not matches:
        return text

    # A lone placeholder keeps the referenced value's type
    if len(matches) == 1 and text.strip() == matches[0].group(0):
        match = matches[0]
        return _lookup(match.group(0), match.group(1), match.group(2), results)

    def _substitute(match: re.Match) -> str:
        value = _lookup(match.group(0), match.group(1), match.group(2), results)
        return _value_to_string(match.group(0), value)

    return PLACEHOLDER_RE.sub(_substitute, text)


def resolve_placeholders(value: Any, results: Mapping[str, Any]) -> Any:
    """Replace step references anywhere inside strings, lists, and mappings."""
    if isinstance(value, str):
        return _resolve_string(value, results)
    if isinstance(value, Mapping):
        return {key: resolve_placeholders(item, results) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_placeholders(item, results) for item in value]
    return value


def prepare_arguments(step: Step, results: Mapping[str, Any]) -> Any:
    prepared = repair_arguments(step)
    resolved = resolve_placeholders(prepared, results)
    logger.debug(f"Prepared arguments for {step.step_id} ({step.tool_name})")
    return resolved
