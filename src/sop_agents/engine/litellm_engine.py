"""Default reasoning engine: a streaming tool-calling loop over litellm."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any

import litellm
from pydantic import ValidationError

from sop_agents.engine.base import Tool
from sop_agents.engine.events import (
    Completed,
    ReasoningDelta,
    StreamEvent,
    TextDelta,
    ToolCall,
    ToolCallsRequested,
    ToolResult,
    ToolUseStart,
)
from sop_agents.errors import EngineError
from sop_agents.log import get_logger

logger = get_logger(__name__)

DEFAULT_MODEL = "bedrock/us.anthropic.claude-sonnet-4-20250514-v1:0"
DEFAULT_MAX_TURNS = 25


def _get(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _first_delta(chunk: Any) -> Any:
    choices = _get(chunk, "choices") or []
    if not choices:
        return None
    return _get(choices[0], "delta") or _get(choices[0], "message")


def to_openai_tool(tool: Tool) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters,
        },
    }


class _PendingCall:
    __slots__ = ("id", "name", "arguments")

    def __init__(self) -> None:
        self.id = ""
        self.name = ""
        self.arguments = ""


class LiteLLMEngine:
    """Run the model, execute requested tools, feed results back, repeat.

    Tool calls requested in the same turn run concurrently. Exceptions from a
    tool propagate and end the session; argument errors and unknown tool names
    are returned to the model as text so it can correct itself.
    """

    def __init__(
        self,
        *,
        default_model: str = DEFAULT_MODEL,
        max_turns: int = DEFAULT_MAX_TURNS,
        completion: Callable[..., Any] | None = None,
        **params: Any,
    ) -> None:
        self.default_model = default_model
        self.max_turns = max_turns
        self._acompletion = completion or litellm.acompletion
        self._params: dict[str, Any] = {"drop_params": True, **params}

    async def stream(
        self,
        *,
        instructions: str,
        prompt: str,
        tools: Sequence[Tool],
        model: str | None = None,
    ) -> AsyncIterator[StreamEvent]:
        by_name = {t.name: t for t in tools}
        specs = [to_openai_tool(t) for t in tools]
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": instructions},
            {"role": "user", "content": prompt},
        ]

        for _turn in range(self.max_turns):
            params: dict[str, Any] = {
                "model": model or self.default_model,
                "messages": messages,
                "stream": True,
                **self._params,
            }
            if specs:
                params["tools"] = specs

            response = await self._acompletion(**params)
            text_parts: list[str] = []
            pending: dict[int, _PendingCall] = {}

            async for chunk in response:
                delta = _first_delta(chunk)
                if delta is None:
                    continue
                reasoning = _get(delta, "reasoning_content")
                if reasoning:
                    yield ReasoningDelta(reasoning)
                content = _get(delta, "content")
                if content:
                    text_parts.append(content)
                    yield TextDelta(content)
                for tc in _get(delta, "tool_calls") or []:
                    index = _get(tc, "index")
                    if index is None:
                        index = len(pending)
                    slot = pending.setdefault(index, _PendingCall())
                    if _get(tc, "id"):
                        slot.id = _get(tc, "id")
                    fn = _get(tc, "function")
                    name = _get(fn, "name")
                    if name and not slot.name:
                        slot.name = name
                        yield ToolUseStart(tool_use_id=slot.id, name=name)
                    slot.arguments += _get(fn, "arguments") or ""

            text = "".join(text_parts)
            if not pending:
                yield Completed(text)
                return

            ordered = [pending[i] for i in sorted(pending)]
            for i, slot in enumerate(ordered):
                slot.id = slot.id or f"call_{_turn}_{i}"
            calls = [ToolCall(s.id, s.name, _parse_arguments(s.arguments)) for s in ordered]
            yield ToolCallsRequested(calls)

            messages.append(
                {
                    "role": "assistant",
                    "content": text or None,
                    "tool_calls": [
                        {
                            "id": s.id,
                            "type": "function",
                            "function": {"name": s.name, "arguments": s.arguments or "{}"},
                        }
                        for s in ordered
                    ],
                }
            )
            outputs = await self._run_tools(by_name, calls)
            for call, output in zip(calls, outputs, strict=True):
                yield ToolResult(tool_use_id=call.id, name=call.name, output=output)
                messages.append({"role": "tool", "tool_call_id": call.id, "content": output})

        raise EngineError(f"Reasoning session exceeded {self.max_turns} turns")

    async def _run_tools(self, by_name: dict[str, Tool], calls: list[ToolCall]) -> list[str]:
        """Run one turn's calls concurrently. The first failure cancels the others."""
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(self._run_tool(by_name, c)) for c in calls]
        except ExceptionGroup as eg:
            raise eg.exceptions[0]
        return [t.result() for t in tasks]

    async def _run_tool(self, by_name: dict[str, Tool], call: ToolCall) -> str:
        tool = by_name.get(call.name)
        if tool is None:
            logger.warning("Model requested unknown tool: %s", call.name)
            return f"Error: unknown tool '{call.name}'"
        try:
            return await tool.invoke(call.input)
        except ValidationError as e:
            logger.warning("Invalid arguments for %s: %s", call.name, e)
            return f"Error: invalid arguments for '{call.name}': {e}"


def _parse_arguments(raw: str) -> dict[str, Any]:
    if not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Tool call arguments are not valid JSON: %.200s", raw)
        return {}
    return value if isinstance(value, dict) else {}
