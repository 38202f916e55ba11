"""Load a single SOP file: YAML frontmatter between ``---`` markers, then a body."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from sop_agents.definitions.models import (
    DEFAULT_VERSION,
    KIND_ALIASES,
    Definition,
    DefinitionKind,
    Frontmatter,
    InputConstraint,
    InputType,
)
from sop_agents.definitions.schema import TASK_FIELD, model_name_for, synthesize
from sop_agents.errors import (
    DefinitionNotFoundError,
    DefinitionParseError,
    DefinitionValidationError,
)
from sop_agents.log import get_logger

logger = get_logger(__name__)

DELIMITER = "---"
_INPUT_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
_INPUT_ADAPTER: TypeAdapter[InputConstraint] = TypeAdapter(InputConstraint)


def parse_frontmatter(text: str, path: str | Path = "<string>") -> tuple[Any, str]:
    """Split ``text`` into (metadata, body).

    Text that does not open with ``---`` has no frontmatter and yields empty
    metadata. An opening marker without a closing one, or YAML that fails to
    parse, raises DefinitionParseError.
    """
    text = text.removeprefix("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != DELIMITER:
        return {}, text

    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == DELIMITER:
            header = "".join(lines[1:i])
            body = "".join(lines[i + 1 :])
            break
    else:
        raise DefinitionParseError(path, "frontmatter is not closed with '---'")

    try:
        data = yaml.safe_load(header)
    except yaml.YAMLError as e:
        raise DefinitionParseError(path, str(e)) from e
    return ({} if data is None else data), body


def _require_text(obj: dict[str, Any], field: str, path: str | Path) -> str:
    value = obj.get(field)
    if value is None:
        raise DefinitionValidationError(path, field, "is required but missing")
    if not isinstance(value, str) or not value.strip():
        raise DefinitionValidationError(path, field, "must be a non-empty string")
    return value


def _validate_inputs(raw: Any, path: str | Path) -> dict[str, InputConstraint]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise DefinitionValidationError(path, "inputs", "must be a mapping of name to input")

    allowed = ", ".join(t.value for t in InputType)
    inputs: dict[str, InputConstraint] = {}
    for name, spec in raw.items():
        field = f"inputs.{name}"
        if not isinstance(name, str) or not _INPUT_NAME_RE.match(name):
            raise DefinitionValidationError(
                path, field, "name must start with a letter and contain only letters, digits or _"
            )
        if name == TASK_FIELD or hasattr(BaseModel, name):
            raise DefinitionValidationError(path, field, "name is reserved")
        if not isinstance(spec, dict):
            raise DefinitionValidationError(path, field, "must be a mapping")
        if spec.get("type") not in {t.value for t in InputType}:
            raise DefinitionValidationError(path, f"{field}.type", f"must be one of: {allowed}")
        try:
            inputs[name] = _INPUT_ADAPTER.validate_python(spec)
        except PydanticValidationError as e:
            first = e.errors()[0]
            loc = ".".join(str(p) for p in first["loc"][1:])
            raise DefinitionValidationError(
                path, f"{field}.{loc}" if loc else field, first["msg"]
            ) from e
    return inputs


def validate_frontmatter(data: Any, path: str | Path) -> Frontmatter:
    """Check parsed metadata against the definition contract."""
    if not isinstance(data, dict):
        raise DefinitionValidationError(path, "frontmatter", "must be a mapping")

    name = _require_text(data, "name", path)
    description = _require_text(data, "description", path)

    raw_kind = data.get("type")
    if raw_kind is None:
        kind = DefinitionKind.AGENT
    elif isinstance(raw_kind, str) and raw_kind in KIND_ALIASES:
        kind = KIND_ALIASES[raw_kind]
    else:
        raise DefinitionValidationError(path, "type", 'must be either "agent" or "coordinator"')

    version = data.get("version")
    if version is None:
        version = DEFAULT_VERSION
    elif isinstance(version, int | float) and not isinstance(version, bool):
        # YAML reads an unquoted ``version: 2.0`` as a float
        version = str(version)
    elif not isinstance(version, str):
        raise DefinitionValidationError(path, "version", "must be a string")

    tools = data.get("tools")
    if tools is None:
        tools = []
    elif not isinstance(tools, list) or not all(isinstance(t, str) for t in tools):
        raise DefinitionValidationError(path, "tools", "must be a list of strings")

    model = data.get("model")
    if model is not None and (not isinstance(model, str) or not model.strip()):
        raise DefinitionValidationError(path, "model", "must be a non-empty string")

    return Frontmatter(
        name=name,
        description=description,
        version=version,
        kind=kind,
        tools=tools,
        inputs=_validate_inputs(data.get("inputs"), path),
        model=model.strip() if model else None,
    )


def build_definition(frontmatter: Frontmatter, body: str, path: str | Path) -> Definition:
    return Definition(
        name=frontmatter.name,
        description=frontmatter.description,
        version=frontmatter.version,
        kind=frontmatter.kind,
        tools=frontmatter.tools,
        inputs=frontmatter.inputs,
        body=body.strip(),
        path=str(path),
        model=frontmatter.model,
        input_model=synthesize(frontmatter.inputs, model_name=model_name_for(frontmatter.name)),
    )


def load(path: str | Path) -> Definition:
    """Load and validate one SOP file.

    Raises:
        DefinitionNotFoundError: the file is missing or unreadable.
        DefinitionParseError: the frontmatter is malformed.
        DefinitionValidationError: the frontmatter breaks a field rule.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DefinitionNotFoundError(path) from e

    data, body = parse_frontmatter(text, path)
    frontmatter = validate_frontmatter(data, path)

    if frontmatter.name != path.stem:
        logger.warning(
            'SOP name "%s" does not match filename "%s" in %s',
            frontmatter.name,
            path.stem,
            path,
        )

    return build_definition(frontmatter, body, path)
