from __future__ import annotations

import pytest

from radiowash.config import (
    ConfigurationError,
    MissingConfigurationError,
    int_env_var,
    optional_env_var,
    require_env_vars,
)


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.setenv("MISSING_A", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_optional_env_var_strips_and_treats_blank_as_unset(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("PADDED_VAR", "  value ")
    monkeypatch.setenv("BLANK_VAR", " ")

    assert optional_env_var("PADDED_VAR") == "value"
    assert optional_env_var("BLANK_VAR") is None


def test_int_env_var_parses_and_validates(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("COUNT_VAR", raising=False)
    assert int_env_var("COUNT_VAR", 7) == 7

    monkeypatch.setenv("COUNT_VAR", "12")
    assert int_env_var("COUNT_VAR", 7) == 12

    monkeypatch.setenv("COUNT_VAR", "twelve")
    with pytest.raises(ConfigurationError, match="must be an integer"):
        int_env_var("COUNT_VAR", 7)

    monkeypatch.setenv("COUNT_VAR", "0")
    with pytest.raises(ConfigurationError, match=">= 1"):
        int_env_var("COUNT_VAR", 7, minimum=1)
