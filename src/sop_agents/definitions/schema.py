"""Synthesize pydantic argument models from declared SOP inputs."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, create_model

from sop_agents.definitions.models import (
    BooleanInput,
    EnumInput,
    InputConstraint,
    ListInput,
    NumberInput,
    StringInput,
)

TASK_FIELD = "task"
TASK_DESCRIPTION = "The specific task to perform"

# Unknown keys from the engine are dropped rather than rejected. Inputs may be
# named model_*, so pydantic's protected namespace is switched off.
_CONFIG = ConfigDict(extra="ignore", protected_namespaces=())


def _annotation_for(constraint: InputConstraint) -> Any:
    if isinstance(constraint, StringInput):
        return str
    if isinstance(constraint, NumberInput):
        return float
    if isinstance(constraint, BooleanInput):
        return bool
    if isinstance(constraint, EnumInput):
        # No values declared: degrade to a plain string
        return Literal[tuple(constraint.values)] if constraint.values else str
    if isinstance(constraint, ListInput):
        return list[str]
    raise TypeError(f"Unsupported input constraint: {constraint!r}")


def _field_for(constraint: InputConstraint) -> tuple[Any, Any]:
    annotation = _annotation_for(constraint)
    kwargs: dict[str, Any] = {"description": constraint.description, "strict": True}
    if constraint.has_default:
        # Attached verbatim; validate_default stays off
        kwargs["default"] = constraint.default
    if not constraint.required:
        annotation = annotation | None
        kwargs.setdefault("default", None)
    return annotation, Field(**kwargs)


def model_name_for(name: str) -> str:
    """Turn a definition name like ``code-reviewer`` into ``CodeReviewerInput``."""
    parts = [p for p in re.split(r"[^0-9A-Za-z]+", name) if p]
    stem = "".join(p[:1].upper() + p[1:] for p in parts) or "Agent"
    if stem[0].isdigit():
        stem = f"Agent{stem}"
    return f"{stem}Input"


def synthesize(
    inputs: Mapping[str, InputConstraint] | None = None,
    *,
    model_name: str = "AgentInput",
) -> type[BaseModel]:
    """Build the argument validator for an SOP.

    The model always has a required ``task`` string. Each declared input maps
    to a strictly typed field carrying its description; ``required: false``
    makes a field nullable and omittable, and a declared default is attached
    as-is.
    """
    fields: dict[str, Any] = {
        TASK_FIELD: (str, Field(description=TASK_DESCRIPTION, strict=True)),
    }
    for field_name, constraint in (inputs or {}).items():
        if field_name == TASK_FIELD:
            continue
        fields[field_name] = _field_for(constraint)
    return create_model(model_name, __config__=_CONFIG, **fields)


def describe_fields(model: type[BaseModel]) -> dict[str, str]:
    """Map each field name to its description."""
    return {name: info.description or "" for name, info in model.model_fields.items()}
