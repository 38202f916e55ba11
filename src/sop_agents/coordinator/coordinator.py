"""Coordinator: the top-level agent that delegates to SOP capabilities.

Every capability handed to the engine is wrapped with request-scoped logging
and the error-mode policy. In fail-fast mode the first failing capability
aborts the request with CapabilityInvocationError; in continue mode the
failure goes back to the engine as a structured payload and the request
completes with whatever the engine makes of it.
"""

from __future__ import annotations

import dataclasses
import time
from collections.abc import AsyncGenerator, Mapping
from pathlib import Path
from typing import Any, overload

from sop_agents.capabilities.factory import Capability, CapabilityFactory
from sop_agents.coordinator.config import CoordinatorConfig
from sop_agents.coordinator.models import (
    CapabilityCall,
    CapabilityFailure,
    ErrorMode,
    FailureDetail,
    InvokeOptions,
    InvokeResult,
)
from sop_agents.coordinator.stream import EventStream
from sop_agents.definitions.discovery import scan
from sop_agents.definitions.models import Definition
from sop_agents.definitions.schema import TASK_FIELD
from sop_agents.engine.base import Agent, ReasoningEngine, Tool
from sop_agents.engine.events import (
    ReasoningDelta,
    StreamEvent,
    TextDelta,
    ToolCallsRequested,
    ToolUseStart,
)
from sop_agents.errors import CapabilityInvocationError, NotInitializedError
from sop_agents.log import (
    ROOT_LOGGER,
    capability_scope,
    correlation_scope,
    get_logger,
    new_correlation_id,
    parse_level,
)

logger = get_logger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class CoordinatedCapability:
    """A capability as seen by the coordinator's engine: logged and policy-bound."""

    def __init__(self, capability: Capability, error_mode: ErrorMode) -> None:
        self._capability = capability
        self._error_mode = error_mode

    @property
    def name(self) -> str:
        return self._capability.name

    @property
    def description(self) -> str:
        return self._capability.description

    @property
    def parameters(self) -> dict[str, Any]:
        return self._capability.parameters

    @property
    def agent_name(self) -> str:
        return self._capability.definition.name

    async def invoke(self, arguments: Mapping[str, Any]) -> str:
        task = arguments.get(TASK_FIELD) if isinstance(arguments, Mapping) else None
        with capability_scope(self.name):
            logger.debug("Tool invoke called with input: %s", arguments)
            # Argument errors are the engine's to report back to the model
            prompt = self._capability.prompt_for(arguments)
            logger.info('Invoking agent with task: "%.80s..."', task or "NO TASK")
            start = time.perf_counter()
            try:
                agent = self._capability.agent()
                result = await agent.invoke(prompt)
            except Exception as e:
                duration = _elapsed_ms(start)
                logger.error("Failed after %dms: %s: %s", duration, type(e).__name__, e)
                if self._error_mode == ErrorMode.FAIL_FAST:
                    raise CapabilityInvocationError(self.agent_name, task, e) from e
                return self.failure_payload(e)

            logger.info("Completed in %dms (%d chars)", _elapsed_ms(start), len(result))
            logger.debug("Output preview: %.200s...", result)
            return result

    def failure_payload(self, error: BaseException) -> str:
        failure = CapabilityFailure(
            agent_name=self.agent_name,
            error=FailureDetail(message=str(error)),
        )
        return failure.model_dump_json()

    def __repr__(self) -> str:
        return f"CoordinatedCapability({self.name!r}, {self._error_mode})"


class Coordinator:
    """Owns the registry, the capability factory and the top-level agent."""

    def __init__(
        self,
        config: CoordinatorConfig | None = None,
        *,
        engine: ReasoningEngine | None = None,
    ) -> None:
        self._config = config or CoordinatorConfig()
        if engine is None:
            from sop_agents.engine.litellm_engine import LiteLLMEngine

            engine = LiteLLMEngine()
        self._engine = engine
        self._factory = CapabilityFactory(
            engine,
            default_model=self._config.default_model,
            default_provider=self._config.default_provider,
            tools=self._config.tools,
        )
        self._registry: dict[str, Definition] = {}
        self._definition: Definition | None = None
        self._capabilities: list[CoordinatedCapability] = []
        self._agent: Agent | None = None
        get_logger(ROOT_LOGGER).setLevel(parse_level(self._config.log_level))

    # -- Inspection ---------------------------------------------------------

    @property
    def config(self) -> CoordinatorConfig:
        return dataclasses.replace(self._config, tools=dict(self._config.tools))

    @property
    def error_mode(self) -> ErrorMode:
        return self._config.error_mode

    @property
    def registry(self) -> dict[str, Definition]:
        return dict(self._registry)

    @property
    def coordinator_definition(self) -> Definition | None:
        return self._definition

    @property
    def capabilities(self) -> list[CoordinatedCapability]:
        return list(self._capabilities)

    @property
    def factory(self) -> CapabilityFactory:
        return self._factory

    @property
    def is_initialized(self) -> bool:
        return self._agent is not None

    # -- Lifecycle ----------------------------------------------------------

    def initialize(self, directory: str | Path | None = None) -> None:
        """Scan ``directory`` (default: config.directory) and build the top-level agent."""
        directory = directory if directory is not None else self._config.directory
        self._registry, self._definition = scan(directory)

        self._capabilities = [
            CoordinatedCapability(c, self._config.error_mode)
            for c in self._factory.create_all(self._registry)
        ]
        own_tools = self._factory.resolve_tools(
            self._definition.tools, owner=f"coordinator {self._definition.name}"
        )
        tools: list[Tool] = [*self._capabilities, *own_tools]

        self._agent = Agent(
            self._engine,
            name=self._definition.name,
            instructions=self._definition.body,
            tools=tools,
            model=self._factory.model_for(self._definition),
        )
        logger.info(
            "Coordinator '%s' ready with %d agent(s) from %s",
            self._definition.name,
            len(self._capabilities),
            directory,
        )

    def clear_cache(self) -> None:
        self._factory.clear_cache()

    def _require_agent(self) -> Agent:
        if self._agent is None:
            raise NotInitializedError()
        return self._agent

    # -- Requests -----------------------------------------------------------

    @overload
    async def invoke(self, request: str) -> str: ...

    @overload
    async def invoke(self, request: str, options: InvokeOptions) -> InvokeResult: ...

    async def invoke(
        self, request: str, options: InvokeOptions | None = None
    ) -> str | InvokeResult:
        """Run one request to completion.

        Returns the response text, or an InvokeResult with the reasoning trace
        and capability calls when ``options`` is given.
        """
        agent = self._require_agent()
        show_thinking = self._config.show_thinking
        if options is not None and options.show_thinking is not None:
            show_thinking = options.show_thinking

        thinking: list[str] = []
        calls: list[CapabilityCall] = []
        chunks: list[str] = []

        with correlation_scope(new_correlation_id()):
            logger.info("Processing request: %.100s... (%d chars)", request, len(request))
            start = time.perf_counter()
            try:
                async for event in agent.stream(request):
                    if isinstance(event, TextDelta):
                        chunks.append(event.text)
                    elif isinstance(event, ReasoningDelta):
                        if show_thinking:
                            thinking.append(event.text)
                            logger.debug("Thinking: %.100s...", event.text)
                    elif isinstance(event, ToolUseStart):
                        logger.debug("Tool selected: %s", event.name)
                    elif isinstance(event, ToolCallsRequested):
                        calls.extend(
                            CapabilityCall(name=c.name, input=c.input) for c in event.calls
                        )
            except Exception as e:
                logger.error(
                    "Request failed after %dms: %s: %s", _elapsed_ms(start), type(e).__name__, e
                )
                raise
            logger.info("Request completed in %dms", _elapsed_ms(start))

        response = "".join(chunks)
        if options is None:
            return response
        return InvokeResult(
            response=response,
            thinking=thinking or None,
            tool_calls=calls or None,
        )

    def stream(self, request: str) -> EventStream[StreamEvent]:
        """Stream engine events for one request.

        The returned stream can be consumed once. Text arrives as TextDelta
        events; capability selection as ToolUseStart.
        """
        agent = self._require_agent()
        correlation_id = new_correlation_id()

        async def produce() -> AsyncGenerator[StreamEvent, None]:
            with correlation_scope(correlation_id):
                logger.info("Streaming request: %.100s... (%d chars)", request, len(request))
                start = time.perf_counter()
                try:
                    async for event in agent.stream(request):
                        if isinstance(event, ToolUseStart):
                            logger.debug("Tool selected: %s", event.name)
                        yield event
                except Exception as e:
                    logger.error(
                        "Stream failed after %dms: %s: %s", _elapsed_ms(start), type(e).__name__, e
                    )
                    raise
                logger.info("Stream completed in %dms", _elapsed_ms(start))

        return EventStream(produce)


def create_coordinator(
    config: CoordinatorConfig | None = None,
    *,
    engine: ReasoningEngine | None = None,
    directory: str | Path | None = None,
) -> Coordinator:
    """Build and initialize a coordinator in one step."""
    coordinator = Coordinator(config, engine=engine)
    coordinator.initialize(directory)
    return coordinator
