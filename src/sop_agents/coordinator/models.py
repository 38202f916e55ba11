"""Pydantic models and enums for coordinator requests and results."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from sop_agents.errors import CapabilityInvocationError


class ErrorMode(StrEnum):
    FAIL_FAST = "fail-fast"
    CONTINUE = "continue"


class InvokeOptions(BaseModel):
    # None falls back to CoordinatorConfig.show_thinking
    show_thinking: bool | None = None


class CapabilityCall(BaseModel):
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class InvokeResult(BaseModel):
    response: str
    thinking: list[str] | None = None
    tool_calls: list[CapabilityCall] | None = None


class FailureDetail(BaseModel):
    message: str
    code: str = CapabilityInvocationError.code


class CapabilityFailure(BaseModel):
    """Returned to the engine in place of a result when running in continue mode."""

    success: bool = False
    agent_name: str
    error: FailureDetail
