"""Validation error formatting for ScaleX service files."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import ValidationError as PydanticValidationError

_VALUE_ERROR_PREFIX = "Value error, "


def format_config_path(loc: Sequence[str | int]) -> str:
    """Render a pydantic error location as a service file path.

    List positions are written as indexes, so the location of a bad scaling
    region reads ``functions.list.events[0].httpApi.scale.region``, the same
    form used when reporting a missing ``httpUrl``.
    """
    path = ""
    for item in loc:
        if isinstance(item, int):
            path += f"[{item}]"
        else:
            path += f".{item}" if path else str(item)
    return path or "<root>"


def flatten_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into one message per field.

    Args:
        exc: Pydantic ValidationError raised for a ServiceConfig

    Returns:
        Messages of the form ``<path>: <reason>``; rejected values are shown
        for validator failures since those depend on what the file contains
    """
    messages: list[str] = []

    for error in exc.errors():
        path = format_config_path(error.get("loc", ()))
        reason = error.get("msg", "invalid value").removeprefix(_VALUE_ERROR_PREFIX)

        if error.get("type") == "value_error":
            messages.append(f"{path}: {reason} (received: {error.get('input')!r})")
        else:
            messages.append(f"{path}: {reason}")

    return messages or ["Service configuration is invalid"]
