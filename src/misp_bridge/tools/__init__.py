# MISP Bridge: Tool Layer
#
# Thin glue between the agent-facing tool boundary and the core:
# validate parameters, call the gateway / engines, format the result.

from ..client.gateway import MispClient
from . import attributes, correlation, events, exports, sightings, tags, warninglists
from .base import NoParams, ToolParams, ToolRegistry, ToolResult, ToolSpec
from .prompts import PromptRegistry
from .resources import ResourceRegistry

_TOOL_MODULES = (events, attributes, correlation, tags, exports, sightings, warninglists)


def build_registry(client: MispClient) -> ToolRegistry:
    """Create a ToolRegistry with every MISP tool registered."""
    registry = ToolRegistry(client)
    for module in _TOOL_MODULES:
        module.register(registry)
    return registry


__all__ = [
    "build_registry",
    "NoParams",
    "ToolParams",
    "ToolRegistry",
    "ToolResult",
    "ToolSpec",
    "PromptRegistry",
    "ResourceRegistry",
]
