"""Decoding of raw tool-call argument payloads."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

from .types import ArgumentDecoder

__all__ = ["ArgumentDecodeResult", "decode_tool_arguments"]


@dataclass(slots=True, frozen=True)
class ArgumentDecodeResult:
    """Decoded arguments or the reason they could not be decoded."""

    arguments: Mapping[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, arguments: Mapping[str, Any]) -> ArgumentDecodeResult:
        return cls(arguments=arguments)

    @classmethod
    def failure(cls, error: str) -> ArgumentDecodeResult:
        return cls(error=error)


def decode_tool_arguments(
    raw: str | None,
    decoder: ArgumentDecoder | None = None,
) -> ArgumentDecodeResult:
    """Parse a raw argument payload into a mapping.

    Empty or whitespace-only payloads decode to ``{}``. The payload must be a
    JSON object. When ``decoder`` is given it receives the parsed mapping and
    may reshape it; ``ValueError``/``TypeError`` from it become a failure.

    Never raises for malformed input.
    """
    if raw is None or not raw.strip():
        parsed: Any = {}
    else:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            return ArgumentDecodeResult.failure(str(exc))
    if not isinstance(parsed, Mapping):
        return ArgumentDecodeResult.failure(
            f"expected a JSON object, got {type(parsed).__name__}"
        )
    if decoder is None:
        return ArgumentDecodeResult.success(parsed)
    try:
        return ArgumentDecodeResult.success(decoder(parsed))
    except (ValueError, TypeError) as exc:
        return ArgumentDecodeResult.failure(str(exc) or type(exc).__name__)
