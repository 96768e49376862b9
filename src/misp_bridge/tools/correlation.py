# MISP Bridge: Correlation Tools

from pydantic import Field

from ..correlation import CorrelationEngine
from .base import NoParams, ToolParams, ToolRegistry, ToolResult, as_json


class CorrelateParams(ToolParams):
    value: str = Field(..., min_length=1, description="Observable value (IP, domain, hash, ...)")


class RelatedEventsParams(ToolParams):
    event_id: str = Field(..., alias="eventId", min_length=1)


def register(registry: ToolRegistry) -> None:

    @registry.tool(
        "misp_correlate",
        "Find correlations for a specific observable value across all MISP events",
        CorrelateParams,
        action="correlating value",
    )
    async def correlate(client, params: CorrelateParams) -> ToolResult:
        result = await CorrelationEngine(client).correlate(params.value)
        if not result.found:
            return ToolResult(f'No results found for "{params.value}" in MISP.')
        return ToolResult(as_json(result.to_dict()))

    @registry.tool(
        "misp_get_related_events",
        "Get events related to a specific event through shared attributes and correlations",
        RelatedEventsParams,
        action="finding related events",
    )
    async def related_events(client, params: RelatedEventsParams) -> ToolResult:
        result = await CorrelationEngine(client).find_related(params.event_id)
        if result.nothing_to_correlate:
            return ToolResult(f"Event {params.event_id} has no attributes to correlate.")
        return ToolResult(as_json(result.to_dict()))

    @registry.tool(
        "misp_describe_types",
        "Get all available MISP attribute types and categories with their mappings",
        NoParams,
        action="getting types",
    )
    async def describe_types(client, params: NoParams) -> ToolResult:
        catalog = await client.describe_types()
        return ToolResult(as_json(catalog.to_dict()))
