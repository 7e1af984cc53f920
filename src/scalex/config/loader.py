"""Configuration loader for ScaleX services.

This module provides the ConfigLoader class for loading, parsing, and validating
the service configuration from a ``serverless.yml``-style YAML file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from scalex.config.env_loader import (
    load_env_file,
    resolve_framework_vars,
    substitute_env_vars,
)
from scalex.config.validator import flatten_pydantic_errors
from scalex.lib.errors import ConfigError
from scalex.models.policy import ServiceConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "serverless.yml"

# Environment variable to custom.scalex key mapping
ENV_VAR_MAP = {
    "bucketName": "SCALEX_BUCKET_NAME",
    "maxConcurrency": "SCALEX_MAX_CONCURRENCY",
}


def _read_yaml_with_env_substitution(path: Path) -> dict[str, Any] | None:
    """Read a YAML file with environment variable substitution.

    Args:
        path: Path to YAML file

    Returns:
        Parsed dictionary or None if empty

    Raises:
        OSError: If file cannot be read
        yaml.YAMLError: If YAML parsing fails
        ConfigError: If env var substitution fails
    """
    raw_text = path.read_text(encoding="utf-8")
    substituted = substitute_env_vars(raw_text)
    content = yaml.safe_load(substituted)
    return content if content else None


def _apply_env_overrides(
    config: dict[str, Any], env_vars: os._Environ[str] | dict[str, str]
) -> None:
    """Fill ``custom.scalex`` keys from environment variables (in-place).

    Values already present in the file take precedence.
    """
    custom = config.setdefault("custom", {}) or {}
    config["custom"] = custom
    scalex = custom.setdefault("scalex", {}) or {}
    custom["scalex"] = scalex

    for key, env_var_name in ENV_VAR_MAP.items():
        if key not in scalex and env_vars.get(env_var_name):
            scalex[key] = env_vars[env_var_name]


class ConfigLoader:
    """Loads and validates the service configuration.

    This class handles:
    - Parsing YAML files with environment variable substitution
    - Resolving ${self:...}, ${opt:...} and ${sls:...} references
    - Loading ``.env`` files next to the service file
    - Applying CLI stage/region overrides
    - Converting validation errors into human-readable messages
    """

    def load_service(
        self,
        file_path: str | Path = DEFAULT_CONFIG_FILE,
        *,
        stage: str | None = None,
        region: str | None = None,
    ) -> ServiceConfig:
        """Load and validate a service configuration.

        Configuration precedence (highest to lowest):
        1. CLI ``--stage`` / ``--region`` options
        2. Service file settings
        3. Environment variables (``SCALEX_*``)

        Args:
            file_path: Path to the service file
            stage: Stage override
            region: Region override

        Returns:
            Validated ServiceConfig instance

        Raises:
            ConfigError: If the file is missing, unparsable or invalid
        """
        path = Path(file_path)
        load_env_file(path.resolve().parent)

        try:
            raw_config = _read_yaml_with_env_substitution(path)
        except OSError as e:
            raise ConfigError(
                "config_file",
                f"Configuration file not found at {file_path}. "
                f"Please ensure the file exists at this path.",
            ) from e
        except yaml.YAMLError as e:
            raise ConfigError(
                "yaml_parse",
                f"Failed to parse YAML file {file_path}: {str(e)}",
            ) from e

        if not isinstance(raw_config, dict):
            raise ConfigError(
                "config_file",
                f"Configuration file {file_path} must contain a mapping",
            )

        raw_config = resolve_framework_vars(
            raw_config, {"stage": stage, "region": region}
        )
        _apply_env_overrides(raw_config, os.environ)

        provider = raw_config.get("provider") or {}
        if not isinstance(provider, dict):
            raise ConfigError("provider", "provider must be a mapping")
        if stage:
            provider["stage"] = stage
        if region:
            provider["region"] = region
        raw_config["provider"] = provider

        return self.validate(raw_config, source=str(file_path))

    def validate(
        self, raw_config: dict[str, Any], source: str = "<config>"
    ) -> ServiceConfig:
        """Validate a raw configuration mapping.

        Args:
            raw_config: Parsed configuration
            source: Description of where the configuration came from

        Returns:
            Validated ServiceConfig instance

        Raises:
            ConfigError: If validation fails
        """
        scalex = (raw_config.get("custom") or {}).get("scalex") or {}
        if not scalex.get("bucketName"):
            raise ConfigError(
                "custom.scalex.bucketName",
                "Missing required serverless parameter at custom.scalex.bucketName",
            )

        try:
            config = ServiceConfig.model_validate(raw_config)
        except PydanticValidationError as e:
            error_messages = flatten_pydantic_errors(e)
            error_text = "\n".join(error_messages)
            raise ConfigError(
                "service_validation",
                f"Invalid service configuration in {source}:\n{error_text}",
            ) from e

        logger.debug(
            f"Loaded service '{config.service}' (stage={config.stage}, "
            f"region={config.region}, functions={len(config.functions)})"
        )
        return config


def validate_scaling(config: ServiceConfig) -> None:
    """Check every scaling policy against the target region.

    A policy whose region list contains the target region must declare an
    ``httpUrl``; other policies may omit it.

    Raises:
        ConfigError: For the first offending event
    """
    for declared in config.http_events():
        policy = declared.policy
        if policy is None:
            continue
        if policy.targets(config.region) and not policy.http_url:
            field = f"{declared.config_path}.scale.httpUrl"
            raise ConfigError(
                field,
                f"Missing required serverless parameter at {field}",
            )
