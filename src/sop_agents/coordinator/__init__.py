"""Coordinator: top-level agent, error-mode policy and request streaming."""

from sop_agents.coordinator.config import CoordinatorConfig, load_coordinator_config
from sop_agents.coordinator.coordinator import (
    CoordinatedCapability,
    Coordinator,
    create_coordinator,
)
from sop_agents.coordinator.models import (
    CapabilityCall,
    CapabilityFailure,
    ErrorMode,
    InvokeOptions,
    InvokeResult,
)
from sop_agents.coordinator.stream import EventStream

__all__ = [
    "CapabilityCall",
    "CapabilityFailure",
    "CoordinatedCapability",
    "Coordinator",
    "CoordinatorConfig",
    "ErrorMode",
    "EventStream",
    "InvokeOptions",
    "InvokeResult",
    "create_coordinator",
    "load_coordinator_config",
]
