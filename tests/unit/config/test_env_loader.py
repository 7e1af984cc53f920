"""Unit tests for environment variable helpers."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from scalex.config.env_loader import (
    get_env_var,
    load_env_file,
    resolve_framework_vars,
    substitute_env_vars,
)
from scalex.lib.errors import ConfigError


@pytest.mark.unit
class TestSubstituteEnvVars:
    """Tests for substitute_env_vars."""

    def test_plain_reference(self, isolated_env: dict[str, str]) -> None:
        os.environ["BACKEND"] = "https://backend"
        assert substitute_env_vars("url: ${BACKEND}") == "url: https://backend"

    def test_env_prefixed_reference(self, isolated_env: dict[str, str]) -> None:
        os.environ["BACKEND"] = "https://backend"
        assert substitute_env_vars("url: ${env:BACKEND}") == "url: https://backend"

    def test_default_used_when_unset(self, isolated_env: dict[str, str]) -> None:
        os.environ.pop("BACKEND", None)
        assert substitute_env_vars("url: ${BACKEND:http://local}") == (
            "url: http://local"
        )

    def test_unset_without_default_raises(self, isolated_env: dict[str, str]) -> None:
        os.environ.pop("BACKEND", None)
        with pytest.raises(ConfigError, match="BACKEND"):
            substitute_env_vars("url: ${env:BACKEND}")

    def test_other_variable_sources_untouched(self) -> None:
        """Test framework references like ${self:service} are left alone."""
        text = "name: ${self:service}-${opt:stage}"
        assert substitute_env_vars(text) == text

    def test_framework_fallbacks_untouched(self, isolated_env: dict[str, str]) -> None:
        """Test ${opt:stage, 'dev'} is not read as a variable with a default."""
        text = "stage: ${opt:stage, 'dev'}\nkey: ${ssm:/svc/key}\nid: ${sls:stage}"
        assert substitute_env_vars(text) == text


@pytest.mark.unit
class TestResolveFrameworkVars:
    """Tests for resolve_framework_vars."""

    def test_self_reference_keeps_type(self) -> None:
        config = {"custom": {"limit": 8}, "max": "${self:custom.limit}"}
        assert resolve_framework_vars(config, {})["max"] == 8

    def test_option_wins_over_fallback(self) -> None:
        config = {"stage": "${opt:stage, 'dev'}"}
        assert resolve_framework_vars(config, {"stage": "prod"}) == {"stage": "prod"}

    def test_sls_stage_follows_provider(self) -> None:
        config = {
            "provider": {"stage": "qa"},
            "name": "svc-${sls:stage}",
            "items": ["${self:provider.stage}"],
        }
        resolved = resolve_framework_vars(config, {})
        assert resolved["name"] == "svc-qa"
        assert resolved["items"] == ["qa"]

    def test_unresolved_reference_left_unchanged(self) -> None:
        config = {"a": "${self:missing}", "b": "x-${opt:region}", "c": "${cf:s.o}"}
        assert resolve_framework_vars(config, {}) == config

    def test_input_not_modified(self) -> None:
        config = {"service": "svc", "name": "${self:service}"}
        resolve_framework_vars(config, {})
        assert config["name"] == "${self:service}"

    def test_cycle_raises(self) -> None:
        config = {"a": "${self:b}", "b": "${self:a}"}
        with pytest.raises(ConfigError, match="refer to each other"):
            resolve_framework_vars(config, {})


@pytest.mark.unit
class TestEnvHelpers:
    """Tests for get_env_var and load_env_file."""

    def test_get_env_var_empty_is_default(self, isolated_env: dict[str, str]) -> None:
        os.environ["EMPTY_VAR"] = ""
        assert get_env_var("EMPTY_VAR", "fallback") == "fallback"

    def test_load_env_file_missing(self, tmp_path: Path) -> None:
        assert load_env_file(tmp_path) is False

    def test_load_env_file_does_not_override(
        self, tmp_path: Path, isolated_env: dict[str, str]
    ) -> None:
        """Test process environment wins over the .env file."""
        os.environ["SCALEX_TEST_VAR"] = "process"
        (tmp_path / ".env").write_text("SCALEX_TEST_VAR=file\nSCALEX_OTHER=file\n")

        assert load_env_file(tmp_path) is True
        assert os.environ["SCALEX_TEST_VAR"] == "process"
        assert os.environ["SCALEX_OTHER"] == "file"
