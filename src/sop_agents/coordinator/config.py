"""Configuration for the coordinator."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sop_agents.coordinator.models import ErrorMode
from sop_agents.engine.base import Tool
from sop_agents.engine.models import DEFAULT_PROVIDER, ModelProvider
from sop_agents.log import parse_level

CONFIG_SECTION = "sop_agents"


@dataclass
class CoordinatorConfig:
    directory: str = "./sops"
    error_mode: ErrorMode = ErrorMode.FAIL_FAST
    log_level: str = "info"
    default_model: str | None = None
    default_provider: ModelProvider = DEFAULT_PROVIDER
    show_thinking: bool = False
    # External tools that SOPs may reference by name in ``tools:``
    tools: dict[str, Tool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.error_mode = ErrorMode(self.error_mode)
        self.default_provider = ModelProvider(self.default_provider)
        parse_level(self.log_level)


def load_coordinator_config(path: Path | None = None) -> CoordinatorConfig:
    """Load coordinator config from a JSON file with env var overrides.

    Only the ``"sop_agents"`` section of the file is read. A missing or
    unparsable file leaves the defaults in place.
    """
    config = CoordinatorConfig()

    if path and path.exists():
        try:
            text = path.read_text()
            if text.strip():
                data = json.loads(text)
                section = data.get(CONFIG_SECTION, {})
                if isinstance(section, dict):
                    _apply(config, section)
        except (json.JSONDecodeError, OSError):
            pass

    if directory := os.environ.get("SOP_AGENTS_DIRECTORY"):
        config.directory = directory
    if error_mode := os.environ.get("SOP_AGENTS_ERROR_MODE"):
        config.error_mode = ErrorMode(error_mode)
    if log_level := os.environ.get("SOP_AGENTS_LOG_LEVEL"):
        parse_level(log_level)
        config.log_level = log_level
    if model := os.environ.get("SOP_AGENTS_MODEL"):
        config.default_model = model
    if provider := os.environ.get("SOP_AGENTS_PROVIDER"):
        config.default_provider = ModelProvider(provider)
    env_thinking = os.environ.get("SOP_AGENTS_SHOW_THINKING")
    if env_thinking is not None:
        config.show_thinking = env_thinking.lower() in ("true", "1", "yes")

    return config


def _apply(cfg: CoordinatorConfig, data: dict[str, Any]) -> None:
    if "directory" in data and isinstance(data["directory"], str):
        cfg.directory = data["directory"]
    if "error_mode" in data:
        cfg.error_mode = ErrorMode(data["error_mode"])
    if "log_level" in data:
        parse_level(data["log_level"])
        cfg.log_level = data["log_level"]
    if "default_model" in data:
        cfg.default_model = data["default_model"]
    if "default_provider" in data:
        cfg.default_provider = ModelProvider(data["default_provider"])
    if "show_thinking" in data and isinstance(data["show_thinking"], bool):
        cfg.show_thinking = data["show_thinking"]
