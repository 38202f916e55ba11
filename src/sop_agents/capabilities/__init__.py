"""Capabilities: definitions wrapped as engine-callable tools."""

from sop_agents.capabilities.factory import (
    CAPABILITY_PREFIX,
    Capability,
    CapabilityFactory,
    build_prompt,
    capability_name,
    definition_name,
)

__all__ = [
    "CAPABILITY_PREFIX",
    "Capability",
    "CapabilityFactory",
    "build_prompt",
    "capability_name",
    "definition_name",
]
