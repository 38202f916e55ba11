"""Directory scans: the agent registry and the single coordinator."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from sop_agents.definitions.builtin import DEFAULT_COORDINATOR
from sop_agents.definitions.loader import load
from sop_agents.definitions.models import Definition
from sop_agents.errors import DirectoryNotFoundError, MultipleCoordinatorsError, SopAgentsError
from sop_agents.log import get_logger

logger = get_logger(__name__)

DEFAULT_DIRECTORY = "./sops"
SOP_GLOB = "*.md"


def _list_sop_files(directory: str | Path) -> list[Path]:
    root = Path(directory)
    if not root.is_dir():
        raise DirectoryNotFoundError(directory)
    return sorted(p for p in root.glob(SOP_GLOB) if p.is_file())


def _load_all(directory: str | Path) -> list[Definition]:
    """Load every SOP in ``directory``, logging each broken file once."""
    files = _list_sop_files(directory)
    if not files:
        logger.warning("No .md files found in directory: %s", directory)
        return []

    definitions: list[Definition] = []
    for path in files:
        try:
            definitions.append(load(path))
        except SopAgentsError as e:
            logger.error("Error loading SOP file %s: %s", path, e)
    return definitions


def build_registry(definitions: Iterable[Definition]) -> dict[str, Definition]:
    """Agent definitions by name. Coordinators are left out; a later duplicate wins."""
    registry: dict[str, Definition] = {}
    for definition in definitions:
        if definition.is_coordinator:
            continue
        if definition.name in registry:
            logger.warning(
                "Duplicate agent name '%s' in %s replaces %s",
                definition.name,
                definition.path,
                registry[definition.name].path,
            )
        registry[definition.name] = definition
    return registry


def select_coordinator(definitions: Iterable[Definition], directory: str | Path) -> Definition:
    """Pick the single coordinator among ``definitions``, or fall back to the built-in one.

    Raises MultipleCoordinatorsError when more than one declares
    ``type: coordinator``.
    """
    found = [d for d in definitions if d.is_coordinator]
    if len(found) > 1:
        raise MultipleCoordinatorsError(directory, [d.path for d in found])
    if found:
        return found[0]

    logger.info("No coordinator SOP in %s, using built-in coordinator", directory)
    return DEFAULT_COORDINATOR


def scan(directory: str | Path = DEFAULT_DIRECTORY) -> tuple[dict[str, Definition], Definition]:
    """Load ``directory`` once and return ``(registry, coordinator)``.

    A file that fails to load is logged and skipped; the rest of the scan
    carries on.
    """
    definitions = _load_all(directory)
    registry = build_registry(definitions)
    coordinator = select_coordinator(definitions, directory)
    logger.debug("Discovered %d agent(s) in %s", len(registry), directory)
    return registry, coordinator


def discover(directory: str | Path = DEFAULT_DIRECTORY) -> dict[str, Definition]:
    """Load every SOP in ``directory`` and return agent definitions by name."""
    registry = build_registry(_load_all(directory))
    logger.debug("Discovered %d agent(s) in %s", len(registry), directory)
    return registry


def resolve_coordinator(directory: str | Path = DEFAULT_DIRECTORY) -> Definition:
    """Return the directory's coordinator, or the built-in one if it has none."""
    return select_coordinator(_load_all(directory), directory)
