"""Variable resolution helpers for ScaleX configuration files."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from scalex.lib.errors import ConfigError

# Matches ${VAR}, ${VAR:default} and the ${env:VAR} form used by service files.
# Framework sources such as ${self:service}, ${opt:stage} or ${ssm:/path} are
# left for resolve_framework_vars or passed through unchanged.
ENV_VAR_PATTERN = re.compile(
    r"\$\{(?!(?:self|opt|sls|cf|ssm|s3|file|param|aws):)"
    r"(?:env:)?([A-Za-z_][A-Za-z0-9_]*)(?::([^}]*))?\}"
)

# Matches ${self:path}, ${opt:name} and ${sls:name} with an optional fallback
# such as ${opt:stage, 'dev'} or ${opt:stage, self:provider.stage}.
FRAMEWORK_VAR_PATTERN = re.compile(
    r"\$\{\s*(self|opt|sls):([A-Za-z0-9_.\-]+)\s*(?:,\s*([^}]*?))?\s*\}"
)
FRAMEWORK_REF_PATTERN = re.compile(r"(self|opt|sls):([A-Za-z0-9_.\-]+)")

MAX_RESOLVE_DEPTH = 10


def get_env_var(name: str, default: str | None = None) -> str | None:
    """Return an environment variable value, or ``default`` when unset."""
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value


def load_env_file(directory: Path) -> bool:
    """Load a ``.env`` file from ``directory`` without overriding the process env.

    Args:
        directory: Directory that may contain a ``.env`` file

    Returns:
        True if a file was found and loaded
    """
    env_path = directory / ".env"
    if not env_path.is_file():
        return False
    return load_dotenv(env_path, override=False)


def substitute_env_vars(text: str) -> str:
    """Replace environment variable references in raw configuration text.

    Args:
        text: Raw YAML text

    Returns:
        Text with every reference replaced by its value

    Raises:
        ConfigError: If a referenced variable is unset and has no default
    """

    def _replace(match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        value = get_env_var(name, default)
        if value is None:
            raise ConfigError(
                name,
                f"Environment variable '{name}' is referenced but not set",
            )
        return value

    return ENV_VAR_PATTERN.sub(_replace, text)


def resolve_framework_vars(
    config: dict[str, Any], options: dict[str, str | None]
) -> dict[str, Any]:
    """Resolve ``${self:...}``, ``${opt:...}`` and ``${sls:...}`` references.

    ``self`` paths are looked up in ``config`` itself, ``opt`` names in the CLI
    ``options``, and ``sls:stage`` resolves to the effective stage. A fallback
    after the comma may be a quoted literal or another reference. References
    that cannot be resolved and have no fallback are left unchanged, as are
    sources ScaleX does not know such as ``${ssm:...}``.

    Args:
        config: Parsed service configuration
        options: CLI options such as ``stage`` and ``region``

    Returns:
        A new mapping with every resolvable reference replaced

    Raises:
        ConfigError: If references nest too deeply or refer to each other
    """

    def _lookup(source: str, name: str, depth: int) -> Any:
        if source == "opt":
            return options.get(name)
        if source == "sls":
            if name != "stage":
                return None
            return options.get("stage") or _lookup("self", "provider.stage", depth)
        value: Any = config
        for part in name.split("."):
            if not isinstance(value, dict) or part not in value:
                return None
            value = value[part]
        return _resolve(value, depth + 1)

    def _fallback(text: str, depth: int) -> Any:
        text = text.strip()
        if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
            return text[1:-1]
        reference = FRAMEWORK_REF_PATTERN.fullmatch(text)
        if reference:
            return _lookup(reference.group(1), reference.group(2), depth)
        return text or None

    def _value_of(match: re.Match[str], depth: int) -> Any:
        source, name, fallback = match.groups()
        value = _lookup(source, name, depth)
        if value is None and fallback is not None:
            value = _fallback(fallback, depth)
        return value

    def _resolve(value: Any, depth: int) -> Any:
        if depth > MAX_RESOLVE_DEPTH:
            raise ConfigError(
                "variables",
                "Variable references nest too deeply or refer to each other",
            )
        if isinstance(value, dict):
            return {key: _resolve(item, depth) for key, item in value.items()}
        if isinstance(value, list):
            return [_resolve(item, depth) for item in value]
        if not isinstance(value, str):
            return value

        # A value made of a single reference keeps the referenced type
        whole = FRAMEWORK_VAR_PATTERN.fullmatch(value)
        if whole:
            resolved = _value_of(whole, depth)
            return value if resolved is None else resolved

        def _replace(match: re.Match[str]) -> str:
            resolved = _value_of(match, depth)
            return match.group(0) if resolved is None else str(resolved)

        return FRAMEWORK_VAR_PATTERN.sub(_replace, value)

    resolved: dict[str, Any] = _resolve(config, 0)
    return resolved
