"""Error taxonomy for definition loading, discovery and capability invocation."""

from __future__ import annotations

from pathlib import Path


class SopAgentsError(Exception):
    """Base class for all sop_agents errors.

    ``code`` is a stable machine-readable identifier and ``context`` carries
    the structured details used to build the message.
    """

    code: str = "SOP_AGENTS_ERROR"

    def __init__(self, message: str, *, context: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, object] = context or {}


class DefinitionNotFoundError(SopAgentsError):
    """Raised when a definition file is missing or unreadable."""

    code = "FILE_NOT_FOUND"

    def __init__(self, path: str | Path) -> None:
        super().__init__(f"SOP file not found: {path}", context={"path": str(path)})
        self.path = str(path)


class DefinitionParseError(SopAgentsError):
    """Raised when the frontmatter block cannot be parsed."""

    code = "FRONTMATTER_PARSE_ERROR"

    def __init__(self, path: str | Path, detail: str) -> None:
        super().__init__(
            f"Failed to parse frontmatter in {path}: {detail}",
            context={"path": str(path), "detail": detail},
        )
        self.path = str(path)
        self.detail = detail


class DefinitionValidationError(SopAgentsError):
    """Raised when frontmatter parses but violates the definition contract."""

    code = "FRONTMATTER_VALIDATION_ERROR"

    def __init__(self, path: str | Path, field: str, reason: str) -> None:
        super().__init__(
            f"Invalid frontmatter in {path}: {field} - {reason}",
            context={"path": str(path), "field": field, "reason": reason},
        )
        self.path = str(path)
        self.field = field
        self.reason = reason


class DirectoryNotFoundError(SopAgentsError):
    code = "DIRECTORY_NOT_FOUND"

    def __init__(self, directory: str | Path) -> None:
        super().__init__(f"Directory not found: {directory}", context={"directory": str(directory)})
        self.directory = str(directory)


class MultipleCoordinatorsError(SopAgentsError):
    """Raised when a directory holds more than one coordinator definition."""

    code = "MULTIPLE_COORDINATORS"

    def __init__(self, directory: str | Path, paths: list[str]) -> None:
        super().__init__(
            f"Multiple coordinator SOPs found in {directory}: {', '.join(paths)}",
            context={"directory": str(directory), "paths": list(paths)},
        )
        self.directory = str(directory)
        self.paths = list(paths)


class CapabilityInvocationError(SopAgentsError):
    """Raised in fail-fast mode when a capability call fails.

    The original exception is chained as ``__cause__``.
    """

    code = "AGENT_INVOCATION_ERROR"

    def __init__(self, agent_name: str, task: str | None, cause: BaseException) -> None:
        super().__init__(
            f"Agent '{agent_name}' failed: {cause}",
            context={
                "agent_name": agent_name,
                "task": task,
                "original_error": str(cause),
            },
        )
        self.agent_name = agent_name
        self.task = task
        self.original_error = cause


class NotInitializedError(SopAgentsError):
    code = "NOT_INITIALIZED"

    def __init__(self) -> None:
        super().__init__("Coordinator not initialized. Call initialize() first.")


class EngineError(SopAgentsError):
    """Raised by reasoning engines for failures outside any single tool call."""

    code = "ENGINE_ERROR"
