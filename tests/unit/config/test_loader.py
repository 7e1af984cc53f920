"""Unit tests for the service configuration loader."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from scalex.config.loader import ConfigLoader, validate_scaling
from scalex.lib.errors import ConfigError

SERVICE_YAML = """
service: orders
provider:
  name: aws
  stage: dev
  region: ap-southeast-1
custom:
  scalex:
    bucketName: state-bucket
functions:
  list:
    handler: handler.list
    events:
      - httpApi:
          method: get
          path: /orders
          scale:
            region: [ap-southeast-1]
            httpUrl: https://orders.internal/orders
  create:
    handler: handler.create
    events:
      - httpApi: POST /orders
"""


def _write(tmp_path: Path, content: str, name: str = "serverless.yml") -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.unit
class TestLoadService:
    """Tests for ConfigLoader.load_service."""

    def test_load_valid_service(self, tmp_path: Path) -> None:
        """Test a valid service file loads into a ServiceConfig."""
        config = ConfigLoader().load_service(_write(tmp_path, SERVICE_YAML))

        assert config.service == "orders"
        assert config.stage == "dev"
        assert config.region == "ap-southeast-1"
        assert config.bucket_name == "state-bucket"
        assert len(list(config.http_events())) == 2

    def test_stage_and_region_overrides(self, tmp_path: Path) -> None:
        """Test CLI overrides take precedence over the file."""
        config = ConfigLoader().load_service(
            _write(tmp_path, SERVICE_YAML), stage="prod", region="us-west-2"
        )
        assert config.stage == "prod"
        assert config.region == "us-west-2"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            ConfigLoader().load_service(tmp_path / "missing.yml")

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "service: [unclosed\n")
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader().load_service(path)
        assert exc_info.value.field == "yaml_parse"

    def test_non_mapping_raises(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "- just\n- a list\n")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            ConfigLoader().load_service(path)

    def test_missing_bucket_name_raises(
        self, tmp_path: Path, isolated_env: dict[str, str]
    ) -> None:
        """Test the bucket name is reported with its full path."""
        os.environ.pop("SCALEX_BUCKET_NAME", None)
        path = _write(tmp_path, "service: orders\nprovider:\n  stage: dev\n")
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader().load_service(path)
        assert exc_info.value.field == "custom.scalex.bucketName"
        assert "Missing required serverless parameter" in exc_info.value.message

    def test_bucket_name_from_environment(
        self, tmp_path: Path, isolated_env: dict[str, str]
    ) -> None:
        """Test SCALEX_BUCKET_NAME fills a missing bucket name."""
        os.environ["SCALEX_BUCKET_NAME"] = "env-bucket"
        path = _write(tmp_path, "service: orders\n")

        config = ConfigLoader().load_service(path)

        assert config.bucket_name == "env-bucket"

    def test_file_bucket_name_wins_over_environment(
        self, tmp_path: Path, isolated_env: dict[str, str]
    ) -> None:
        os.environ["SCALEX_BUCKET_NAME"] = "env-bucket"
        config = ConfigLoader().load_service(_write(tmp_path, SERVICE_YAML))
        assert config.bucket_name == "state-bucket"

    def test_env_substitution_in_file(
        self, tmp_path: Path, isolated_env: dict[str, str]
    ) -> None:
        """Test ${env:VAR} references are resolved."""
        os.environ["ORDERS_URL"] = "https://orders.example.com"
        content = SERVICE_YAML.replace(
            "https://orders.internal/orders", "${env:ORDERS_URL}/orders"
        )

        config = ConfigLoader().load_service(_write(tmp_path, content))

        declared = next(config.http_events())
        assert declared.policy is not None
        assert declared.policy.http_url == "https://orders.example.com/orders"

    def test_dotenv_file_loaded(
        self, tmp_path: Path, isolated_env: dict[str, str]
    ) -> None:
        """Test a .env file next to the service file is loaded."""
        os.environ.pop("SCALEX_BUCKET_NAME", None)
        (tmp_path / ".env").write_text("SCALEX_BUCKET_NAME=dotenv-bucket\n")
        path = _write(tmp_path, "service: orders\n")

        config = ConfigLoader().load_service(path)

        assert config.bucket_name == "dotenv-bucket"

    def test_invalid_policy_reports_field_path(self, tmp_path: Path) -> None:
        """Test pydantic errors are flattened into readable messages."""
        content = SERVICE_YAML.replace("[ap-southeast-1]", "ap-southeast-1")
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader().load_service(_write(tmp_path, content))
        assert exc_info.value.field == "service_validation"
        assert "functions.list.events[0].httpApi.scale.region" in str(exc_info.value)


FRAMEWORK_VARS_YAML = """
service: orders
provider:
  name: aws
  stage: ${opt:stage, 'dev'}
  region: ${opt:region, 'ap-southeast-1'}
custom:
  scalex:
    bucketName: ${self:service}-${sls:stage}-state
functions:
  list:
    name: ${self:service}-${sls:stage}-list
    handler: handler.list
    events:
      - httpApi: GET /orders
"""


@pytest.mark.unit
class TestFrameworkVariables:
    """Tests for ${self:...}, ${opt:...} and ${sls:...} references."""

    def test_fallbacks_used_without_options(
        self, tmp_path: Path, isolated_env: dict[str, str]
    ) -> None:
        """Test quoted fallbacks resolve when no CLI option is given."""
        config = ConfigLoader().load_service(_write(tmp_path, FRAMEWORK_VARS_YAML))

        assert config.stage == "dev"
        assert config.region == "ap-southeast-1"
        assert config.bucket_name == "orders-dev-state"
        assert config.deployed_function_name("list") == "orders-dev-list"

    def test_cli_options_resolve_references(
        self, tmp_path: Path, isolated_env: dict[str, str]
    ) -> None:
        config = ConfigLoader().load_service(
            _write(tmp_path, FRAMEWORK_VARS_YAML), stage="prod", region="us-west-2"
        )

        assert config.stage == "prod"
        assert config.region == "us-west-2"
        assert config.deployed_function_name("list") == "orders-prod-list"

    def test_reference_fallback(
        self, tmp_path: Path, isolated_env: dict[str, str]
    ) -> None:
        """Test a fallback may itself be a self reference."""
        content = FRAMEWORK_VARS_YAML.replace(
            "${opt:region, 'ap-southeast-1'}", "${opt:region, self:custom.home}"
        ).replace("custom:\n", "custom:\n  home: eu-west-1\n")

        config = ConfigLoader().load_service(_write(tmp_path, content))

        assert config.region == "eu-west-1"

    def test_unknown_sources_left_unchanged(
        self, tmp_path: Path, isolated_env: dict[str, str]
    ) -> None:
        content = FRAMEWORK_VARS_YAML.replace(
            "${self:service}-${sls:stage}-list", "${ssm:/orders/list-name}"
        )

        config = ConfigLoader().load_service(_write(tmp_path, content))

        assert config.deployed_function_name("list") == "${ssm:/orders/list-name}"

    def test_self_referencing_stage_raises(
        self, tmp_path: Path, isolated_env: dict[str, str]
    ) -> None:
        content = FRAMEWORK_VARS_YAML.replace("${opt:stage, 'dev'}", "${sls:stage}")
        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader().load_service(_write(tmp_path, content))
        assert exc_info.value.field == "variables"


@pytest.mark.unit
class TestValidateScaling:
    """Tests for validate_scaling."""

    def test_missing_http_url_in_target_region(self, tmp_path: Path) -> None:
        """Test httpUrl is required when the policy targets the region."""
        content = SERVICE_YAML.replace(
            "            httpUrl: https://orders.internal/orders\n", ""
        )
        config = ConfigLoader().load_service(_write(tmp_path, content))

        with pytest.raises(ConfigError) as exc_info:
            validate_scaling(config)

        assert exc_info.value.field == "functions.list.events[0].httpApi.scale.httpUrl"

    def test_missing_http_url_outside_target_region(self, tmp_path: Path) -> None:
        """Test a policy for other regions may omit httpUrl."""
        content = SERVICE_YAML.replace(
            "            httpUrl: https://orders.internal/orders\n", ""
        )
        config = ConfigLoader().load_service(
            _write(tmp_path, content), region="us-east-1"
        )

        validate_scaling(config)
