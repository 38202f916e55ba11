"""Shared fixtures for sop_agents tests."""

from __future__ import annotations

import logging
import textwrap
from collections.abc import AsyncIterator, Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from sop_agents.capabilities.factory import CAPABILITY_PREFIX
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
from sop_agents.log import ROOT_LOGGER

_ENV_VARS = (
    "SOP_AGENTS_DIRECTORY",
    "SOP_AGENTS_ERROR_MODE",
    "SOP_AGENTS_LOG_LEVEL",
    "SOP_AGENTS_MODEL",
    "SOP_AGENTS_PROVIDER",
    "SOP_AGENTS_SHOW_THINKING",
)

RESEARCH_SOP = """\
---
name: research
description: Researches a topic and reports findings
inputs:
  depth:
    type: enum
    values: [quick, thorough]
    description: How deep to dig
    required: false
---
# Research

Research instructions.
"""

WRITER_SOP = """\
---
name: writer
description: Writes prose from notes
inputs:
  style:
    type: string
    description: Writing style
    default: plain
---
# Writer

Writer instructions.
"""


def _sop(frontmatter: str, body: str = "Do the work.") -> str:
    return f"---\n{textwrap.dedent(frontmatter).strip()}\n---\n\n{body}\n"


def _agent_sop(name: str, body: str | None = None, **extra: str) -> str:
    lines = [f"name: {name}", f"description: The {name} agent"]
    lines.extend(f"{k}: {v}" for k, v in extra.items())
    return _sop("\n".join(lines), body or f"{name.capitalize()} agent instructions.")


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch):
    """Clear env overrides and undo logging changes made by the code under test."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    yield
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        if getattr(handler, "_sop_agents", False):
            root.removeHandler(handler)
    root.setLevel(logging.NOTSET)


@pytest.fixture
def write_sop(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes ``<dir>/<filename>`` with raw text."""

    def _write(filename: str, text: str, directory: Path | None = None) -> Path:
        target = directory or tmp_path / "sops"
        target.mkdir(parents=True, exist_ok=True)
        path = target / filename
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sop_dir(tmp_path: Path) -> Path:
    path = tmp_path / "sops"
    path.mkdir()
    return path


@pytest.fixture
def research_dir(sop_dir: Path) -> Path:
    (sop_dir / "research.md").write_text(RESEARCH_SOP)
    (sop_dir / "writer.md").write_text(WRITER_SOP)
    return sop_dir


@pytest.fixture
def alpha_beta_dir(sop_dir: Path) -> Path:
    (sop_dir / "alpha.md").write_text(_agent_sop("alpha"))
    (sop_dir / "beta.md").write_text(_agent_sop("beta"))
    return sop_dir


class ScriptedEngine:
    """Engine double with a fixed coordinator script.

    A session whose tools include capabilities (``agent_*``) is treated as the
    coordinator: it calls the scripted tools in order, one per turn, and
    answers with the joined tool outputs. Any other session is a sub-agent and
    answers ``Agent response for: <prompt>``, unless its instructions contain
    one of the ``failing`` markers, in which case it raises RuntimeError.
    """

    def __init__(
        self,
        script: Sequence[tuple[str, dict[str, Any]]] = (),
        *,
        failing: Sequence[str] = (),
        reasoning: str | None = None,
    ) -> None:
        self.script = list(script)
        self.failing = list(failing)
        self.reasoning = reasoning
        self.sessions: list[dict[str, Any]] = []
        self.calls: list[ToolCall] = []
        self.results: list[ToolResult] = []

    async def stream(
        self,
        *,
        instructions: str,
        prompt: str,
        tools: Sequence[Tool],
        model: str | None = None,
    ) -> AsyncIterator[StreamEvent]:
        self.sessions.append(
            {
                "instructions": instructions,
                "prompt": prompt,
                "tools": [t.name for t in tools],
                "model": model,
            }
        )
        if not any(t.name.startswith(CAPABILITY_PREFIX) for t in tools):
            for marker in self.failing:
                if marker in instructions:
                    raise RuntimeError(f"{marker} exploded")
            text = f"Agent response for: {prompt}"
            yield TextDelta(text)
            yield Completed(text)
            return

        if self.reasoning:
            yield ReasoningDelta(self.reasoning)
        by_name = {t.name: t for t in tools}
        outputs: list[str] = []
        for i, (name, arguments) in enumerate(self.script):
            call = ToolCall(f"call_{i}", name, arguments)
            yield ToolUseStart(tool_use_id=call.id, name=name)
            yield ToolCallsRequested([call])
            self.calls.append(call)
            output = await by_name[name].invoke(arguments)
            result = ToolResult(tool_use_id=call.id, name=name, output=output)
            self.results.append(result)
            outputs.append(output)
            yield result

        text = "\n\n".join(outputs) or f"Handled: {prompt}"
        yield TextDelta(text)
        yield Completed(text)


@pytest.fixture
def agent_sop() -> Callable[..., str]:
    return _agent_sop


@pytest.fixture
def make_sop() -> Callable[..., str]:
    return _sop


@pytest.fixture
def scripted_engine() -> type[ScriptedEngine]:
    return ScriptedEngine
