"""Assistant client settings and their environment fallbacks."""

from __future__ import annotations

import inspect
import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, Mapping

__all__ = [
    "AssistantSettings",
    "DEFAULT_MODEL",
    "DEFAULT_MAX_TOOL_ITERATIONS",
    "RESPONSES_BETA_HEADER",
    "env_string",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-5"
DEFAULT_MAX_TOOL_ITERATIONS = 60
RESPONSES_BETA_HEADER = "responses=v1"

# Earlier names win when several are set.
_ENV_FALLBACKS: Mapping[str, tuple[str, ...]] = {
    "api_key": ("OPENAI_API_KEY",),
    "base_url": ("OPENAI_BASE_URL", "OPENAI_API_BASE", "OPENAI_ENDPOINT"),
    "model": ("OPENAI_MODEL",),
    "instructions": ("OPENAI_ASSISTANT_INSTRUCTIONS",),
    "organization": ("OPENAI_ORG", "OPENAI_ORGANIZATION"),
    "project": ("OPENAI_PROJECT",),
}
_BOOL_ENV_FALLBACKS: Mapping[str, str] = {
    "OPENAI_ASSISTANT_DEBUG": "debug_logging",
}
_INT_ENV_FALLBACKS: Mapping[str, str] = {
    "OPENAI_ASSISTANT_MAX_TOOL_ITERATIONS": "max_tool_iterations",
}
_FLOAT_ENV_FALLBACKS: Mapping[str, str] = {
    "OPENAI_REQUEST_TIMEOUT": "request_timeout",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}


def env_string(raw: str | None) -> str | None:
    """Trimmed value, or ``None`` for missing/blank values."""
    if not raw:
        return None
    trimmed = raw.strip()
    return trimmed or None


@dataclass(slots=True)
class AssistantSettings:
    """Everything an assistant client needs, supplied at construction.

    Unset (``None``) fields are filled from the environment by
    :meth:`with_env_fallbacks`; explicit values always win.
    """

    api_key: str | Callable[[], str] | None = None
    base_url: str | None = None
    model: str | None = None
    instructions: str | None = None
    organization: str | None = None
    project: str | None = None
    default_headers: Dict[str, str | None] = field(default_factory=dict)
    parallel_tool_calls: bool | None = None
    max_tool_iterations: int | None = None
    request_timeout: float | None = None
    debug_logging: bool | None = None

    @property
    def resolved_model(self) -> str:
        return self.model or DEFAULT_MODEL

    @property
    def resolved_max_tool_iterations(self) -> int:
        if self.max_tool_iterations is None:
            return DEFAULT_MAX_TOOL_ITERATIONS
        return max(0, int(self.max_tool_iterations))

    def resolved_headers(self) -> dict[str, str]:
        """Default headers merged over the Responses beta header, ``None`` values dropped."""
        merged: dict[str, str | None] = {"OpenAI-Beta": RESPONSES_BETA_HEADER}
        merged.update(self.default_headers or {})
        return {key: value for key, value in merged.items() if value is not None}

    def resolve_api_key(self) -> str | None:
        """The API key, calling a key provider when one was supplied.

        Key providers must be synchronous. A provider returning an awaitable
        is logged and treated as a missing key.
        """
        key = self.api_key
        if callable(key):
            key = key()
        if inspect.isawaitable(key):
            LOGGER.warning("API key provider returned an awaitable; key providers must be synchronous")
            close = getattr(key, "close", None)
            if callable(close):
                close()
            return None
        return env_string(key) if isinstance(key, str) else None

    def with_env_fallbacks(self, environ: Mapping[str, str] | None = None) -> AssistantSettings:
        """Return a copy whose unset fields are taken from the environment."""
        env = os.environ if environ is None else environ
        overrides: Dict[str, Any] = {}
        for field_name, env_names in _ENV_FALLBACKS.items():
            if getattr(self, field_name) is not None:
                continue
            for env_name in env_names:
                value = env_string(env.get(env_name))
                if value is not None:
                    overrides[field_name] = value
                    break
        for env_name, field_name in _BOOL_ENV_FALLBACKS.items():
            value = env_string(env.get(env_name))
            if value is not None and getattr(self, field_name) is None:
                overrides[field_name] = value.lower() in _TRUE_VALUES
        for env_name, field_name in _INT_ENV_FALLBACKS.items():
            value = env_string(env.get(env_name))
            if value is None or getattr(self, field_name) is not None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid integer",
                    env_name,
                    value,
                )
        for env_name, field_name in _FLOAT_ENV_FALLBACKS.items():
            value = env_string(env.get(env_name))
            if value is None or getattr(self, field_name) is not None:
                continue
            try:
                overrides[field_name] = float(value)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid float", env_name, value
                )
        if overrides:
            LOGGER.debug("Applying environment settings fallbacks: %s", sorted(overrides))
            return replace(self, **overrides)
        return replace(self)

    def describe(self) -> dict[str, Any]:
        """Settings as a mapping with the API key redacted, for logging."""
        payload = {item.name: getattr(self, item.name) for item in fields(self)}
        payload["api_key"] = "***" if self.api_key else None
        return payload
