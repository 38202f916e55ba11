"""Reasoning engine contract, events and the default litellm engine."""

from sop_agents.engine.base import Agent, FunctionTool, ReasoningEngine, Tool
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
from sop_agents.engine.models import ModelProvider, ModelSpec, parse_model_spec, resolve_model

__all__ = [
    "Agent",
    "Completed",
    "FunctionTool",
    "ModelProvider",
    "ModelSpec",
    "ReasoningDelta",
    "ReasoningEngine",
    "StreamEvent",
    "TextDelta",
    "Tool",
    "ToolCall",
    "ToolCallsRequested",
    "ToolResult",
    "ToolUseStart",
    "parse_model_spec",
    "resolve_model",
]
