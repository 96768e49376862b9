# MISP Bridge: Tag Tools

from typing import Literal, Optional

from pydantic import Field

from .base import ToolParams, ToolRegistry, ToolResult, as_json


class ListTagsParams(ToolParams):
    search: Optional[str] = Field(None, description="Search filter for tag names")
    limit: Optional[int] = Field(None, ge=1, description="Max results to return")


class SearchByTagParams(ToolParams):
    tag: str = Field(..., min_length=1, description="Tag name (e.g. tlp:white, mitre-attack:T1059)")
    type: Literal["event", "attribute"] = Field("event", description="Search events or attributes")


def register(registry: ToolRegistry) -> None:

    @registry.tool(
        "misp_list_tags",
        "List available MISP tags with usage statistics",
        ListTagsParams,
        action="listing tags",
    )
    async def list_tags(client, params: ListTagsParams) -> ToolResult:
        tags = await client.list_tags(params.search)
        if params.limit:
            tags = tags[:params.limit]
        if not tags:
            return ToolResult("No tags found.")
        return ToolResult(as_json([
            {
                "id": t.id,
                "name": t.name,
                "colour": t.colour,
                "event_count": t.event_count,
                "attribute_count": t.attribute_count,
            }
            for t in tags
        ]))

    @registry.tool(
        "misp_search_by_tag",
        "Search MISP events or attributes by tag (MITRE ATT&CK, TLP, custom tags)",
        SearchByTagParams,
        action="searching by tag",
    )
    async def search_by_tag(client, params: SearchByTagParams) -> ToolResult:
        if params.type == "attribute":
            attributes = await client.search_attributes(tags=[params.tag])
            if not attributes:
                return ToolResult(f'No attributes found with tag "{params.tag}".')
            return ToolResult(as_json([
                {
                    "id": a.id,
                    "event_id": a.event_id,
                    "type": a.type,
                    "value": a.value,
                    "category": a.category,
                    "event_info": a.event_info,
                }
                for a in attributes
            ]))

        events = await client.search_events(tags=[params.tag])
        if not events:
            return ToolResult(f'No events found with tag "{params.tag}".')
        return ToolResult(as_json([
            {
                "id": e.id,
                "info": e.info,
                "date": e.date,
                "threat_level": e.threat_level.label,
                "org": e.org or "Unknown",
                "tags": e.tag_names,
            }
            for e in events
        ]))
