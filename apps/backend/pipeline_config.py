"""
Pipeline Configuration Module
=============================

Tunables for output repair and step execution.
Values are read once at import from environment variables and fall back to
the defaults below when unset or malformed.
"""

import logging
import os

logger = logging.getLogger(__name__)


def _get_int_setting(env_key: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(env_key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {env_key}='{raw}', defaulting to {default}")
        return default
    if value < minimum:
        logger.warning(f"{env_key}={value} is below {minimum}, defaulting to {default}")
        return default
    return value


def _get_ratio_setting(env_key: str, default: float) -> float:
    raw = os.environ.get(env_key)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid {env_key}='{raw}', defaulting to {default}")
        return default
    if not 0.0 < value <= 1.0:
        logger.warning(f"{env_key}={value} is outside (0, 1], defaulting to {default}")
        return default
    return value


def _get_list_setting(env_key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(env_key)
    if raw is None:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


# Attempts per step, first run included (2 = one retry)
STEP_MAX_ATTEMPTS = _get_int_setting("STEPFLOW_STEP_MAX_ATTEMPTS", 2, minimum=1)

# Web text profile guards
WEB_MIN_INPUT_LENGTH = _get_int_setting("STEPFLOW_WEB_MIN_INPUT_LENGTH", 100)
WEB_MIN_OUTPUT_LENGTH = _get_int_setting("STEPFLOW_WEB_MIN_OUTPUT_LENGTH", 50)
WEB_MAX_REDUCTION_RATIO = _get_ratio_setting("STEPFLOW_WEB_MAX_REDUCTION_RATIO", 0.9)
HTML_TEXT_MAX_CHARS = _get_int_setting("STEPFLOW_HTML_TEXT_MAX_CHARS", 10000, minimum=1)

# Arguments that must match existing content byte-for-byte (str_replace style)
VERBATIM_ARGUMENTS = _get_list_setting("STEPFLOW_VERBATIM_ARGUMENTS", ("old_str",))
