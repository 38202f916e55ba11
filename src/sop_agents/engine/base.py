"""Engine-facing protocols and the Agent session holder.

The reasoning engine is external: anything that takes operating instructions,
a prompt and a set of tools and yields ``StreamEvent`` objects will do. The
engine owns the tool-calling loop and decides which tools to call.
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from sop_agents.engine.events import Completed, StreamEvent, TextDelta


@runtime_checkable
class Tool(Protocol):
    """Something the engine can call with JSON arguments."""

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def parameters(self) -> dict[str, Any]:
        """JSON schema of the accepted arguments."""
        ...

    async def invoke(self, arguments: dict[str, Any]) -> str: ...


class ReasoningEngine(Protocol):
    def stream(
        self,
        *,
        instructions: str,
        prompt: str,
        tools: Sequence[Tool],
        model: str | None = None,
    ) -> AsyncIterator[StreamEvent]: ...


class Agent:
    """One reasoning setup: instructions, callable tools and a model.

    Each ``stream``/``invoke`` call opens a fresh session on the engine, so a
    single Agent can serve many requests.
    """

    def __init__(
        self,
        engine: ReasoningEngine,
        *,
        name: str,
        instructions: str,
        tools: Sequence[Tool] = (),
        model: str | None = None,
    ) -> None:
        self.engine = engine
        self.name = name
        self.instructions = instructions
        self.tools: list[Tool] = list(tools)
        self.model = model

    def stream(self, prompt: str) -> AsyncIterator[StreamEvent]:
        return self.engine.stream(
            instructions=self.instructions,
            prompt=prompt,
            tools=self.tools,
            model=self.model,
        )

    async def invoke(self, prompt: str) -> str:
        """Run a session to completion and return the final text."""
        chunks: list[str] = []
        final: str | None = None
        async for event in self.stream(prompt):
            if isinstance(event, TextDelta):
                chunks.append(event.text)
            elif isinstance(event, Completed):
                final = event.text
        return final if final is not None else "".join(chunks)

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r}, model={self.model!r}, tools={len(self.tools)})"


class FunctionTool:
    """Expose a plain function (sync or async) as an external tool."""

    def __init__(
        self,
        name: str,
        description: str,
        func: Callable[..., Any | Awaitable[Any]],
        input_model: type[BaseModel] | None = None,
    ) -> None:
        self._name = name
        self._description = description
        self._func = func
        self._input_model = input_model

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def parameters(self) -> dict[str, Any]:
        if self._input_model is None:
            return {"type": "object", "properties": {}}
        return self._input_model.model_json_schema()

    async def invoke(self, arguments: dict[str, Any]) -> str:
        kwargs = arguments
        if self._input_model is not None:
            kwargs = self._input_model.model_validate(arguments).model_dump()
        result = self._func(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result if isinstance(result, str) else str(result)
