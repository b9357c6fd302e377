"""Tests for runtime settings validation and loading."""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest
from pydantic import ValidationError

from brokerage_ledger.config import AppSettings, SettingsLoadError, config_load_settings, config_setup_logging


def test_settings_read_brokerage_policy_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Load rate, timezone and rounding from environment variables.

    Args:
        monkeypatch: Pytest environment patcher.

    Returns:
        None: Assertions validate loaded settings.

    Raises:
        AssertionError: Raised when environment values are ignored.
    """

    monkeypatch.setenv("BROKERAGE_RATE", "0.0125")
    monkeypatch.setenv("BUSINESS_TIMEZONE", " Europe/London ")
    monkeypatch.setenv("BROKERAGE_ROUNDING_QUANTUM", "0.01")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = config_load_settings()

    assert settings.brokerage_rate == Decimal("0.0125")
    assert settings.business_timezone == "Europe/London"
    assert settings.brokerage_rounding_quantum == Decimal("0.01")
    assert settings.log_level == "DEBUG"


def test_settings_allow_missing_brokerage_rate() -> None:
    """Start without a rate so calculations can report it as missing configuration.

    Returns:
        None: Assertions validate default values.

    Raises:
        AssertionError: Raised when defaults deviate.
    """

    settings = AppSettings(_env_file=None, brokerage_rate=None)

    assert settings.brokerage_rate is None
    assert settings.business_timezone == "Asia/Kolkata"
    assert settings.brokerage_minimum_holding_days == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"brokerage_rate": Decimal("0")},
        {"brokerage_rate": Decimal("1.5")},
        {"business_timezone": "Nowhere/City"},
        {"log_level": "verbose"},
        {"api_default_limit": 100, "api_max_limit": 10},
    ],
)
def test_settings_reject_invalid_values(overrides: dict[str, object]) -> None:
    """Reject invalid rate, timezone, log level and limit bounds.

    Args:
        overrides: Invalid field values.

    Returns:
        None: Assertions validate rejection.

    Raises:
        AssertionError: Raised when invalid settings are accepted.
    """

    with pytest.raises(ValidationError):
        AppSettings(_env_file=None, **overrides)


def test_config_load_settings_wraps_validation_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """Raise SettingsLoadError with guidance when the environment is invalid.

    Args:
        monkeypatch: Pytest environment patcher.

    Returns:
        None: Assertions validate wrapped error.

    Raises:
        AssertionError: Raised when the raw validation error leaks.
    """

    monkeypatch.setenv("BROKERAGE_RATE", "-1")

    with pytest.raises(SettingsLoadError, match="Startup configuration validation failed"):
        config_load_settings()


def test_config_setup_logging_installs_single_root_handler() -> None:
    """Install exactly one formatted root handler and reject unknown levels.

    Returns:
        None: Assertions validate logging configuration.

    Raises:
        AssertionError: Raised when handlers accumulate or levels are accepted.
    """

    root_logger = logging.getLogger()
    previous_handlers = list(root_logger.handlers)
    previous_level = root_logger.level
    try:
        config_setup_logging("warning")
        config_setup_logging("debug")

        assert len(root_logger.handlers) == 1
        assert root_logger.level == logging.DEBUG
        with pytest.raises(ValueError):
            config_setup_logging("chatty")
    finally:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        for handler in previous_handlers:
            root_logger.addHandler(handler)
        root_logger.setLevel(previous_level)
