"""Events produced by a reasoning engine while it works on a prompt."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TextDelta:
    type: ClassVar[str] = "text_delta"
    text: str


@dataclass(frozen=True)
class ReasoningDelta:
    type: ClassVar[str] = "reasoning_delta"
    text: str


@dataclass(frozen=True)
class ToolUseStart:
    """The model has started emitting a call to ``name``."""

    type: ClassVar[str] = "tool_use_start"
    tool_use_id: str
    name: str


@dataclass(frozen=True)
class ToolCallsRequested:
    """A turn finished with these tool calls; the engine is about to run them."""

    type: ClassVar[str] = "tool_calls_requested"
    calls: list[ToolCall]


@dataclass(frozen=True)
class ToolResult:
    type: ClassVar[str] = "tool_result"
    tool_use_id: str
    name: str
    output: str


@dataclass(frozen=True)
class Completed:
    """Final answer of the session."""

    type: ClassVar[str] = "completed"
    text: str


StreamEvent = (
    TextDelta | ReasoningDelta | ToolUseStart | ToolCallsRequested | ToolResult | Completed
)
