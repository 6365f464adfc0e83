"""Canonical text form of tool handler results."""

from __future__ import annotations

import json
import math
from typing import Any, Mapping

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "ToolResultSerializationError",
    "format_tool_result",
    "serialize_tool_result",
]

DEFAULT_MAX_DEPTH = 32


class ToolResultSerializationError(ValueError):
    """Raised when a handler result has no canonical JSON form."""


def serialize_tool_result(value: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Render ``value`` as the string sent back to the backend.

    ``None`` becomes ``"null"``, strings pass through untouched, booleans and
    numbers use their JSON spelling, and composite values are pretty-printed
    JSON with two-space indentation in insertion order.

    Raises:
        ToolResultSerializationError: For cycles, nesting deeper than
            ``max_depth``, non-finite floats or unsupported types.
    """
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    normalized = _normalize(value, depth=0, max_depth=max_depth, active=set())
    if isinstance(normalized, (dict, list)):
        return json.dumps(normalized, ensure_ascii=False, indent=2, allow_nan=False)
    return json.dumps(normalized, allow_nan=False)


def format_tool_result(value: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Like :func:`serialize_tool_result` but never raises."""
    try:
        return serialize_tool_result(value, max_depth=max_depth)
    except (ToolResultSerializationError, TypeError, ValueError) as exc:
        return f"Unable to serialize tool result: {exc}"


def _normalize(value: Any, *, depth: int, max_depth: int, active: set[int]) -> Any:
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ToolResultSerializationError(f"{value!r} is not valid JSON")
        return value
    if depth >= max_depth:
        raise ToolResultSerializationError(f"result nested deeper than {max_depth} levels")

    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict) and not isinstance(value, Mapping):
        value = to_dict()
        if value is None or isinstance(value, (str, bool, int, float)):
            return _normalize(value, depth=depth, max_depth=max_depth, active=active)

    marker = id(value)
    if marker in active:
        raise ToolResultSerializationError("circular reference in result")
    if isinstance(value, Mapping):
        active.add(marker)
        try:
            return {
                _normalize_key(key): _normalize(item, depth=depth + 1, max_depth=max_depth, active=active)
                for key, item in value.items()
            }
        finally:
            active.discard(marker)
    if isinstance(value, (list, tuple)):
        active.add(marker)
        try:
            return [_normalize(item, depth=depth + 1, max_depth=max_depth, active=active) for item in value]
        finally:
            active.discard(marker)
    raise ToolResultSerializationError(f"{type(value).__name__} is not JSON serializable")


def _normalize_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, (int, float)) or key is None:
        return json.dumps(key)
    raise ToolResultSerializationError(f"keys must be strings, got {type(key).__name__}")
