"""CLI entry point for sop-agents."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TextIO, cast

from sop_agents import __version__
from sop_agents.capabilities.factory import capability_name
from sop_agents.coordinator.config import CoordinatorConfig, load_coordinator_config
from sop_agents.coordinator.coordinator import Coordinator, create_coordinator
from sop_agents.coordinator.models import ErrorMode
from sop_agents.definitions.discovery import SOP_GLOB, scan, select_coordinator
from sop_agents.definitions.loader import load
from sop_agents.definitions.models import Definition
from sop_agents.engine.base import ReasoningEngine
from sop_agents.engine.events import TextDelta
from sop_agents.errors import SopAgentsError
from sop_agents.log import LEVELS, configure_logging

EXIT_COMMANDS = ("/quit", "/exit")


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _create_engine() -> ReasoningEngine:
    from sop_agents.engine.litellm_engine import LiteLLMEngine

    return LiteLLMEngine()


def _load_config(args: argparse.Namespace) -> CoordinatorConfig:
    config = load_coordinator_config(cast(Path | None, args.config))
    if args.directory:
        config.directory = cast(str, args.directory)
    if args.model:
        config.default_model = cast(str, args.model)
    if args.error_mode:
        config.error_mode = ErrorMode(args.error_mode)
    if args.log_level:
        config.log_level = cast(str, args.log_level)
    return config


def _build_coordinator(args: argparse.Namespace) -> Coordinator:
    config = _load_config(args)
    configure_logging(config.log_level)
    return create_coordinator(config, engine=_create_engine())


async def _stream_request(coordinator: Coordinator, request: str, out: TextIO) -> None:
    async with coordinator.stream(request) as events:
        async for event in events:
            if isinstance(event, TextDelta):
                out.write(event.text)
                out.flush()
    out.write("\n")


def _cmd_list(args: argparse.Namespace) -> None:
    directory = cast(str, args.directory or load_coordinator_config(args.config).directory)
    try:
        registry, coordinator = scan(directory)
    except SopAgentsError as e:
        _fail(str(e))
        return

    print(f"Coordinator: {coordinator.name} ({coordinator.path})")
    print(f"Agents: {len(registry)}")
    for name, definition in sorted(registry.items()):
        print(f"  {capability_name(name)}  v{definition.version}  {definition.description}")
        for field, constraint in definition.inputs.items():
            flag = "" if constraint.required else ", optional"
            print(f"      - {field} ({constraint.type}{flag}): {constraint.description}")


def _cmd_validate(args: argparse.Namespace) -> None:
    directory = Path(cast(str, args.directory or load_coordinator_config(args.config).directory))
    if not directory.is_dir():
        _fail(f"directory not found: {directory}")

    failures = 0
    definitions: list[Definition] = []
    for path in sorted(directory.glob(SOP_GLOB)):
        try:
            definition = load(path)
        except SopAgentsError as e:
            failures += 1
            print(f"FAIL  {path.name}  {e}")
            continue
        definitions.append(definition)
        print(f"OK    {path.name}  {definition.kind}  {definition.name}")

    try:
        select_coordinator(definitions, directory)
    except SopAgentsError as e:
        failures += 1
        print(f"FAIL  {e}")

    if failures:
        print(f"\n{failures} problem(s) found", file=sys.stderr)
        sys.exit(1)


def _cmd_run(args: argparse.Namespace) -> None:
    try:
        coordinator = _build_coordinator(args)
        asyncio.run(_stream_request(coordinator, cast(str, args.request), sys.stdout))
    except SopAgentsError as e:
        _fail(str(e))


async def _chat(coordinator: Coordinator) -> None:
    while True:
        try:
            line = await asyncio.to_thread(input, "You: ")
        except EOFError:
            print()
            return
        request = line.strip()
        if request in EXIT_COMMANDS:
            print("Goodbye!")
            return
        if not request:
            continue
        sys.stdout.write("\nAssistant: ")
        try:
            await _stream_request(coordinator, request, sys.stdout)
        except SopAgentsError as e:
            print(f"\nError: {e}", file=sys.stderr)
        print()


def _cmd_chat(args: argparse.Namespace) -> None:
    try:
        coordinator = _build_coordinator(args)
    except SopAgentsError as e:
        _fail(str(e))
        return
    print("=== CHAT MODE (type /quit to exit) ===\n")
    asyncio.run(_chat(coordinator))


def _add_common(p: argparse.ArgumentParser) -> None:
    _ = p.add_argument("--config", type=Path, default=None, help="JSON config file")


def _add_runtime(p: argparse.ArgumentParser) -> None:
    _ = p.add_argument("--model", default=None, help="Default model spec, e.g. openai/gpt-4o")
    _ = p.add_argument(
        "--error-mode",
        choices=[m.value for m in ErrorMode],
        default=None,
        dest="error_mode",
        help="How capability failures are handled (default: fail-fast)",
    )
    _ = p.add_argument(
        "--log-level",
        choices=sorted(LEVELS),
        default=None,
        dest="log_level",
        help="Log verbosity (default: info)",
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="sop-agents",
        description="Run Markdown SOPs as agents under a coordinator",
    )
    _ = parser.add_argument(
        "-V", "--version", action="version", version=f"sop-agents {__version__}"
    )
    subparsers = parser.add_subparsers(dest="command")

    list_p = subparsers.add_parser("list", help="List discovered agents and the coordinator")
    _ = list_p.add_argument("directory", nargs="?", default=None, help="SOP directory")
    _add_common(list_p)

    validate_p = subparsers.add_parser("validate", help="Load every SOP and report problems")
    _ = validate_p.add_argument("directory", nargs="?", default=None, help="SOP directory")
    _add_common(validate_p)

    run_p = subparsers.add_parser("run", help="Run one request and stream the answer")
    _ = run_p.add_argument("request", help="Request text")
    _ = run_p.add_argument("--directory", "-d", default=None, help="SOP directory")
    _add_common(run_p)
    _add_runtime(run_p)

    chat_p = subparsers.add_parser("chat", help="Interactive chat with the coordinator")
    _ = chat_p.add_argument("directory", nargs="?", default=None, help="SOP directory")
    _add_common(chat_p)
    _add_runtime(chat_p)

    args = parser.parse_args()
    dispatch = {
        "list": _cmd_list,
        "validate": _cmd_validate,
        "run": _cmd_run,
        "chat": _cmd_chat,
    }
    command = cast(str | None, args.command)
    handler = dispatch.get(command) if command is not None else None
    if handler:
        handler(args)
    else:
        parser.print_help()
        sys.exit(1)
