"""sop_agents: Markdown SOPs as schema-validated agents under a coordinator."""

from importlib.metadata import PackageNotFoundError, version

from sop_agents.capabilities import Capability, CapabilityFactory
from sop_agents.coordinator import (
    Coordinator,
    CoordinatorConfig,
    ErrorMode,
    InvokeOptions,
    InvokeResult,
    create_coordinator,
    load_coordinator_config,
)
from sop_agents.definitions import (
    Definition,
    DefinitionKind,
    discover,
    load,
    resolve_coordinator,
    scan,
)
from sop_agents.engine import Agent, FunctionTool, ReasoningEngine, Tool
from sop_agents.errors import (
    CapabilityInvocationError,
    DefinitionNotFoundError,
    DefinitionParseError,
    DefinitionValidationError,
    DirectoryNotFoundError,
    EngineError,
    MultipleCoordinatorsError,
    NotInitializedError,
    SopAgentsError,
)

try:
    __version__ = version("sop-agents")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = [
    "Agent",
    "Capability",
    "CapabilityFactory",
    "CapabilityInvocationError",
    "Coordinator",
    "CoordinatorConfig",
    "Definition",
    "DefinitionKind",
    "DefinitionNotFoundError",
    "DefinitionParseError",
    "DefinitionValidationError",
    "DirectoryNotFoundError",
    "EngineError",
    "ErrorMode",
    "FunctionTool",
    "InvokeOptions",
    "InvokeResult",
    "MultipleCoordinatorsError",
    "NotInitializedError",
    "ReasoningEngine",
    "SopAgentsError",
    "Tool",
    "create_coordinator",
    "discover",
    "load",
    "load_coordinator_config",
    "resolve_coordinator",
    "scan",
]
