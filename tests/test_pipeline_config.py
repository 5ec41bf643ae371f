#!/usr/bin/env python3
"""Tests for environment-driven pipeline settings."""

import importlib

import pytest

import pipeline_config


@pytest.fixture
def reload_config(monkeypatch):
    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(pipeline_config)

    yield _reload
    monkeypatch.undo()
    importlib.reload(pipeline_config)


def test_defaults(reload_config, monkeypatch) -> None:
    for key in (
        "STEPFLOW_STEP_MAX_ATTEMPTS",
        "STEPFLOW_WEB_MAX_REDUCTION_RATIO",
        "STEPFLOW_VERBATIM_ARGUMENTS",
    ):
        monkeypatch.delenv(key, raising=False)

    config = reload_config()

    assert config.STEP_MAX_ATTEMPTS == 2
    assert config.WEB_MAX_REDUCTION_RATIO == 0.9
    assert config.VERBATIM_ARGUMENTS == ("old_str",)


def test_overrides_are_read_from_environment(reload_config) -> None:
    config = reload_config(
        STEPFLOW_STEP_MAX_ATTEMPTS="4",
        STEPFLOW_WEB_MAX_REDUCTION_RATIO="0.5",
        STEPFLOW_VERBATIM_ARGUMENTS="old_str, anchor,,",
    )

    assert config.STEP_MAX_ATTEMPTS == 4
    assert config.WEB_MAX_REDUCTION_RATIO == 0.5
    assert config.VERBATIM_ARGUMENTS == ("old_str", "anchor")


def test_invalid_values_fall_back_with_warning(reload_config, caplog) -> None:
    with caplog.at_level("WARNING", logger="pipeline_config"):
        config = reload_config(
            STEPFLOW_STEP_MAX_ATTEMPTS="0",
            STEPFLOW_WEB_MIN_INPUT_LENGTH="many",
            STEPFLOW_WEB_MAX_REDUCTION_RATIO="1.5",
        )

    assert config.STEP_MAX_ATTEMPTS == 2
    assert config.WEB_MIN_INPUT_LENGTH == 100
    assert config.WEB_MAX_REDUCTION_RATIO == 0.9
    assert "STEPFLOW_WEB_MIN_INPUT_LENGTH='many'" in caplog.text
