"""SOP definitions: loading, validation, schema synthesis and discovery."""

from sop_agents.definitions.builtin import DEFAULT_COORDINATOR
from sop_agents.definitions.discovery import discover, resolve_coordinator, scan
from sop_agents.definitions.loader import load, parse_frontmatter, validate_frontmatter
from sop_agents.definitions.models import (
    BooleanInput,
    Definition,
    DefinitionKind,
    EnumInput,
    InputConstraint,
    InputType,
    ListInput,
    NumberInput,
    StringInput,
)
from sop_agents.definitions.schema import synthesize

__all__ = [
    "DEFAULT_COORDINATOR",
    "BooleanInput",
    "Definition",
    "DefinitionKind",
    "EnumInput",
    "InputConstraint",
    "InputType",
    "ListInput",
    "NumberInput",
    "StringInput",
    "discover",
    "load",
    "parse_frontmatter",
    "resolve_coordinator",
    "scan",
    "synthesize",
    "validate_frontmatter",
]
