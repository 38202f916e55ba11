"""Pydantic models for SOP definitions and their declared inputs."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_VERSION = "1.0.0"


class DefinitionKind(StrEnum):
    AGENT = "agent"
    COORDINATOR = "coordinator"


# "orchestrator" is the older spelling of the coordinator kind
KIND_ALIASES: dict[str, DefinitionKind] = {
    "agent": DefinitionKind.AGENT,
    "coordinator": DefinitionKind.COORDINATOR,
    "orchestrator": DefinitionKind.COORDINATOR,
}


class InputType(StrEnum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    LIST = "list"


class _InputBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str = ""
    default: Any = None
    required: bool = True

    @property
    def has_default(self) -> bool:
        # A declared ``default: null`` still counts as a default
        return "default" in self.model_fields_set


class StringInput(_InputBase):
    type: Literal["string"] = "string"


class NumberInput(_InputBase):
    type: Literal["number"] = "number"


class BooleanInput(_InputBase):
    type: Literal["boolean"] = "boolean"


class EnumInput(_InputBase):
    type: Literal["enum"] = "enum"
    values: list[str] = Field(default_factory=list)


class ListInput(_InputBase):
    """A list of strings."""

    type: Literal["list"] = "list"


InputConstraint = Annotated[
    StringInput | NumberInput | BooleanInput | EnumInput | ListInput,
    Field(discriminator="type"),
]


class Frontmatter(BaseModel):
    """Validated metadata header, before the body and schema are attached."""

    name: str
    description: str
    version: str = DEFAULT_VERSION
    kind: DefinitionKind = DefinitionKind.AGENT
    tools: list[str] = Field(default_factory=list)
    inputs: dict[str, InputConstraint] = Field(default_factory=dict)
    model: str | None = None


class Definition(BaseModel):
    """A loaded, validated SOP. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    version: str = DEFAULT_VERSION
    kind: DefinitionKind = DefinitionKind.AGENT
    tools: list[str] = Field(default_factory=list)
    inputs: dict[str, InputConstraint] = Field(default_factory=dict)
    body: str = ""
    path: str = ""
    model: str | None = None
    # Synthesized argument validator, always containing ``task``
    input_model: type[BaseModel]

    @property
    def is_coordinator(self) -> bool:
        return self.kind == DefinitionKind.COORDINATOR
