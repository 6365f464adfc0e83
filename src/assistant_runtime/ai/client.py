"""Tool-calling assistant client built on the OpenAI Responses API."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Mapping, Sequence

import httpx
from openai import AsyncOpenAI

from .errors import AssistantNotConfiguredError
from .orchestration.conversation import ConversationStore
from .orchestration.rollback import turn_transaction
from .orchestration.tools.executor import ToolInvoker
from .orchestration.tools.registry import ToolRegistry
from .orchestration.tools.types import ToolDefinition
from .orchestration.turn import ToolResultCallback, ToolStartCallback, TurnDriver
from .orchestration.types import AssistantResult, ConversationItem, Message
from ..services.settings import AssistantSettings

__all__ = ["AssistantClient"]

LOGGER = logging.getLogger(__name__)


class AssistantClient:
    """Multi-turn assistant that can call host-defined tools.

    The client owns the conversation: a display log of everything produced
    and a wire history of what the backend sees next. Each :meth:`send` is
    one turn; a turn that fails for any reason (backend error, cancellation,
    tool iteration limit, tool request without registered tools) leaves both
    logs exactly as they were before the call.

    Only one turn may be in flight per client. Concurrent ``send`` calls are
    not serialised here and must be prevented by the caller.

    Example:
        client = AssistantClient(
            AssistantSettings(instructions="You are an assistant."),
            tools=[ToolDefinition(name="find_entities", description="...", handler=find_entities)],
        )
        if client.is_ready():
            result = await client.send("list entities")
            print(result.text)
    """

    def __init__(
        self,
        settings: AssistantSettings | None = None,
        *,
        tools: Sequence[ToolDefinition] | None = None,
        client: AsyncOpenAI | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._settings = (settings or AssistantSettings()).with_env_fallbacks(environ)
        self._debug = bool(self._settings.debug_logging)
        self._registry = ToolRegistry(tools)
        self._invoker = ToolInvoker(self._registry, log_payloads=self._debug)
        self._store = ConversationStore(self._settings.instructions)
        self._client = client if client is not None else self._build_client(self._settings)
        self._active_task: asyncio.Task[Any] | None = None
        if self._debug:
            LOGGER.debug("Assistant client settings: %s", self._settings.describe())

    @property
    def settings(self) -> AssistantSettings:
        return self._settings

    @property
    def tool_registry(self) -> ToolRegistry:
        return self._registry

    @property
    def conversation(self) -> tuple[ConversationItem, ...]:
        """Everything produced or consumed so far, reasoning items included."""
        return self._store.display.items()

    @property
    def wire_history(self) -> tuple[ConversationItem, ...]:
        """Items the next backend request will carry."""
        return self._store.wire.items()

    def is_ready(self) -> bool:
        return self._client is not None

    def reset_conversation(self) -> None:
        """Forget the dialogue, keeping only the system instruction."""
        self._store.reset()

    async def send(
        self,
        text: str,
        *,
        on_tool_start: ToolStartCallback | None = None,
        on_tool_result: ToolResultCallback | None = None,
    ) -> AssistantResult:
        """Run one turn for the user's ``text`` and return the assistant reply.

        Args:
            text: The user's message.
            on_tool_start: Called with each tool call before it runs.
            on_tool_result: Called with each tool call and its result.

        Raises:
            AssistantNotConfiguredError: If no API key was configured.
            ToolProtocolError: If the backend requested a tool that cannot be honoured.
            ToolIterationLimitError: If the tool loop exceeded ``max_tool_iterations``.
            openai.APIError: Backend and transport failures, unchanged.
            asyncio.CancelledError: If the turn was cancelled.
        """
        if self._client is None:
            raise AssistantNotConfiguredError()

        driver = TurnDriver(
            self._client,
            self._store,
            self._invoker,
            model=self._settings.resolved_model,
            max_tool_iterations=self._settings.resolved_max_tool_iterations,
            parallel_tool_calls=bool(self._settings.parallel_tool_calls),
            log_payloads=self._debug,
            on_tool_start=on_tool_start,
            on_tool_result=on_tool_result,
        )
        LOGGER.debug("Starting assistant turn (%d wire item(s))", len(self._store.wire))
        try:
            with turn_transaction(self._store):
                self._store.append(Message.user(text))
                # cancel() targets this task only, never the caller's.
                task = asyncio.create_task(driver.run())
                self._active_task = task
                try:
                    result = await task
                finally:
                    if self._active_task is task:
                        self._active_task = None
                    if not task.done():
                        task.cancel()
        except asyncio.CancelledError:
            LOGGER.info("Assistant turn cancelled")
            raise
        except Exception as exc:
            LOGGER.warning("Assistant turn failed: %s", exc)
            raise
        LOGGER.debug(
            "Assistant turn finished after %d request(s), %d tool round(s)",
            driver.request_count,
            driver.iteration,
        )
        return result

    def cancel(self) -> None:
        """Cancel the in-flight turn, if any; it is rolled back."""
        task = self._active_task
        if task and not task.done():
            LOGGER.info("Cancelling active assistant turn (caller requested cancellation)")
            task.cancel()
        else:
            LOGGER.debug("cancel() called but no active turn to cancel")

    async def aclose(self) -> None:
        """Close the underlying OpenAI client to release network resources."""

        close = getattr(self._client, "close", None)
        if close is None:
            return
        try:
            result = close()
        except Exception as exc:
            LOGGER.debug("Assistant client close failed to start: %s", exc)
            return
        if inspect.isawaitable(result):
            await result

    def _build_client(self, settings: AssistantSettings) -> AsyncOpenAI | None:
        try:
            api_key = settings.resolve_api_key()
        except Exception as exc:
            LOGGER.warning("Failed to resolve assistant API key: %s", exc)
            return None
        if not api_key:
            LOGGER.info("Assistant backend is not configured (no API key)")
            return None

        options: dict[str, Any] = {
            "api_key": api_key,
            "base_url": settings.base_url,
            "organization": settings.organization,
            "project": settings.project,
            "default_headers": settings.resolved_headers(),
            # Failed backend calls fail the turn; the SDK must not retry them.
            "max_retries": 0,
        }
        if settings.request_timeout is not None:
            options["timeout"] = httpx.Timeout(settings.request_timeout)
        try:
            return AsyncOpenAI(**options)
        except Exception as exc:
            LOGGER.warning("Failed to initialize OpenAI client for assistant: %s", exc)
            return None
