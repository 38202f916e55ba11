"""Turn definitions into engine-callable capabilities backed by cached agents."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterable, Mapping
from typing import Any

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from sop_agents.definitions.models import Definition
from sop_agents.definitions.schema import TASK_FIELD
from sop_agents.engine.base import Agent, ReasoningEngine, Tool
from sop_agents.engine.events import Completed, TextDelta
from sop_agents.engine.models import DEFAULT_PROVIDER, ModelProvider, resolve_model
from sop_agents.log import get_logger

logger = get_logger(__name__)

CAPABILITY_PREFIX = "agent_"


def capability_name(definition_name: str) -> str:
    return f"{CAPABILITY_PREFIX}{definition_name}"


def definition_name(name: str) -> str | None:
    """Inverse of capability_name; None for names without the prefix."""
    if not name.startswith(CAPABILITY_PREFIX):
        return None
    return name[len(CAPABILITY_PREFIX) :]


def build_prompt(task: str, inputs: Mapping[str, Any]) -> str:
    """Render the prompt sent to a sub-agent.

    >>> print(build_prompt("Summarize", {"task": "Summarize", "tone": "dry"}))
    ## Task
    Summarize
    <BLANKLINE>
    ## Input Parameters
    - tone: "dry"
    """
    entries = [(k, v) for k, v in inputs.items() if k != TASK_FIELD]
    if not entries:
        return f"## Task\n{task}"
    lines = "\n".join(f"- {k}: {json.dumps(v, ensure_ascii=False)}" for k, v in entries)
    return f"## Task\n{task}\n\n## Input Parameters\n{lines}"


def supplied_inputs(arguments: BaseModel) -> dict[str, Any]:
    """Validated arguments minus the None placeholders of omitted optional fields.

    Values come back JSON-ready. Declared defaults skip validation, so a YAML
    default such as ``2024-01-01`` arrives here as a ``date``.
    """
    return {
        k: to_jsonable_python(v)
        for k, v in arguments.model_dump().items()
        if k in arguments.model_fields_set or v is not None
    }


class Capability:
    """A definition exposed to the engine as the tool ``agent_<name>``."""

    def __init__(self, definition: Definition, factory: CapabilityFactory) -> None:
        self.definition = definition
        self._factory = factory

    @property
    def name(self) -> str:
        return capability_name(self.definition.name)

    @property
    def description(self) -> str:
        return self.definition.description

    @property
    def input_model(self) -> type[BaseModel]:
        return self.definition.input_model

    @property
    def parameters(self) -> dict[str, Any]:
        return self.input_model.model_json_schema()

    def prompt_for(self, arguments: Mapping[str, Any]) -> str:
        """Validate ``arguments`` and render the sub-agent prompt.

        Raises pydantic.ValidationError for arguments the schema rejects.
        """
        validated = self.input_model.model_validate(dict(arguments))
        inputs = supplied_inputs(validated)
        return build_prompt(inputs[TASK_FIELD], inputs)

    def agent(self) -> Agent:
        """The cached agent behind this capability."""
        return self._factory.get_or_create(self.definition)

    async def invoke(self, arguments: Mapping[str, Any]) -> str:
        prompt = self.prompt_for(arguments)
        return await self.agent().invoke(prompt)

    async def stream(self, arguments: Mapping[str, Any]) -> AsyncIterator[str]:
        """Yield the sub-agent's text as it is produced."""
        prompt = self.prompt_for(arguments)
        agent = self.agent()
        streamed = False
        async for event in agent.stream(prompt):
            if isinstance(event, TextDelta):
                streamed = True
                yield event.text
            elif isinstance(event, Completed) and not streamed and event.text:
                yield event.text

    def __repr__(self) -> str:
        return f"Capability({self.name!r})"


class CapabilityFactory:
    """Builds capabilities and owns the per-name agent cache.

    At most one Agent per definition name is alive at a time: the cache lookup
    and insert in ``get_or_create`` run without yielding to the event loop.
    """

    def __init__(
        self,
        engine: ReasoningEngine,
        *,
        default_model: str | None = None,
        default_provider: ModelProvider | str = DEFAULT_PROVIDER,
        tools: Mapping[str, Tool] | None = None,
    ) -> None:
        self.engine = engine
        self.default_model = default_model
        self.default_provider = ModelProvider(default_provider)
        self._tools: dict[str, Tool] = dict(tools or {})
        self._cache: dict[str, Agent] = {}

    def create_invocable(self, definition: Definition) -> Capability:
        return Capability(definition, self)

    def create_all(self, registry: Mapping[str, Definition]) -> list[Capability]:
        return [self.create_invocable(d) for d in registry.values()]

    def resolve_tools(self, names: Iterable[str], *, owner: str) -> list[Tool]:
        """Look up declared tool references; unknown names are logged and skipped."""
        resolved: list[Tool] = []
        for name in names:
            tool = self._tools.get(name)
            if tool is None:
                logger.warning('Tool "%s" declared by %s not found in tool registry', name, owner)
                continue
            resolved.append(tool)
        return resolved

    def model_for(self, definition: Definition) -> str | None:
        return resolve_model(definition.model or self.default_model, self.default_provider)

    def get_or_create(self, definition: Definition) -> Agent:
        cached = self._cache.get(definition.name)
        if cached is not None:
            return cached

        tools = self.resolve_tools(definition.tools, owner=definition.name)
        model = self.model_for(definition)
        agent = Agent(
            self.engine,
            name=definition.name,
            instructions=definition.body,
            tools=tools,
            model=model,
        )
        self._cache[definition.name] = agent
        logger.info("Creating agent with model: %s", model or "engine default")
        if tools:
            logger.info("Injecting %d tool(s): %s", len(tools), ", ".join(t.name for t in tools))
        return agent

    def cached_names(self) -> list[str]:
        return list(self._cache)

    def clear_cache(self) -> None:
        self._cache.clear()
