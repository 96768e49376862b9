# MISP Bridge: Event Tools
#
# search / get / create / update / publish / tag events.

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from ..client.models import Event
from .base import ToolParams, ToolRegistry, ToolResult, as_json


def event_summary(event: Event) -> Dict[str, Any]:
    """Compact event view used by search-style tools."""
    return {
        "id": event.id,
        "info": event.info,
        "date": event.date,
        "threat_level": event.threat_level.label,
        "analysis": event.analysis.label,
        "published": event.published,
        "org": event.org or "Unknown",
        "attribute_count": event.attribute_count,
        "tags": event.tag_names,
    }


def event_detail(event: Event) -> Dict[str, Any]:
    return {
        "id": event.id,
        "uuid": event.uuid,
        "info": event.info,
        "date": event.date,
        "threat_level": event.threat_level.label,
        "analysis": event.analysis.label,
        "distribution": event.distribution.label,
        "published": event.published,
        "org": event.org or "Unknown",
        "tags": event.tag_names,
        "attribute_count": event.attribute_count,
        "attributes": [
            {
                "id": a.id,
                "type": a.type,
                "category": a.category,
                "value": a.value,
                "to_ids": a.to_ids,
                "comment": a.comment,
            }
            for a in event.attributes or []
        ],
        "objects": [
            {
                "id": o.id,
                "name": o.name,
                "meta_category": o.meta_category,
                "attributes": [{"type": a.type, "value": a.value} for a in o.attributes],
            }
            for o in event.objects or []
        ],
        "galaxies": [
            {"name": g.name, "type": g.type, "clusters": g.clusters}
            for g in event.galaxies or []
        ],
        "related_events": [
            {"id": r.id, "info": r.info, "date": r.date}
            for r in event.related_events or []
        ],
    }


class SearchEventsParams(ToolParams):
    value: Optional[str] = Field(None, description="IOC value to search across all attributes")
    type: Optional[str] = Field(None, description="Attribute type filter (ip-src, domain, sha256, ...)")
    category: Optional[str] = Field(None, description="Category filter")
    tags: Optional[List[str]] = Field(None, description="Tag filters (e.g. tlp:white)")
    event_id: Optional[str] = Field(None, alias="eventId", description="Specific event ID")
    org: Optional[str] = Field(None, description="Organization filter")
    date_from: Optional[str] = Field(None, alias="dateFrom", description="Start date (YYYY-MM-DD)")
    date_to: Optional[str] = Field(None, alias="dateTo", description="End date (YYYY-MM-DD)")
    last: Optional[str] = Field(None, description="Relative time (e.g. 1d, 7d, 30d)")
    published: Optional[bool] = Field(None, description="Only published events")
    limit: Optional[int] = Field(None, ge=1, description="Max results (default 50)")
    page: Optional[int] = Field(None, ge=1, description="Page number")


class EventIdParams(ToolParams):
    event_id: str = Field(..., alias="eventId", min_length=1, description="Event ID")


class CreateEventParams(ToolParams):
    info: str = Field(..., min_length=1, description="Event description/title")
    distribution: Literal[0, 1, 2, 3, 4] = Field(
        ..., description="0=Organization, 1=Community, 2=Connected, 3=All, 4=Sharing group"
    )
    threat_level: Literal[1, 2, 3, 4] = Field(
        ..., alias="threatLevel", description="1=High, 2=Medium, 3=Low, 4=Undefined"
    )
    analysis: Literal[0, 1, 2] = Field(..., description="0=Initial, 1=Ongoing, 2=Complete")
    date: Optional[str] = Field(None, description="Event date (YYYY-MM-DD)")
    tags: Optional[List[str]] = Field(None, description="Tags to apply")
    published: Optional[bool] = Field(None, description="Publish immediately")


class UpdateEventParams(ToolParams):
    event_id: str = Field(..., alias="eventId", min_length=1)
    info: Optional[str] = None
    threat_level: Optional[Literal[1, 2, 3, 4]] = Field(None, alias="threatLevel")
    analysis: Optional[Literal[0, 1, 2]] = None
    published: Optional[bool] = None


class TagEventParams(ToolParams):
    event_id: str = Field(..., alias="eventId", min_length=1)
    tag: str = Field(..., min_length=1, description="Tag name (e.g. tlp:white)")
    remove: bool = Field(False, description="Remove the tag instead of adding it")


def register(registry: ToolRegistry) -> None:

    @registry.tool(
        "misp_search_events",
        "Search MISP events by IOC value, type, tags, date range, or organization",
        SearchEventsParams,
        action="searching events",
    )
    async def search_events(client, params: SearchEventsParams) -> ToolResult:
        events = await client.search_events(
            value=params.value,
            type=params.type,
            category=params.category,
            tags=params.tags,
            eventid=params.event_id,
            org=params.org,
            date_from=params.date_from,
            date_to=params.date_to,
            last=params.last,
            published=params.published,
            limit=params.limit,
            page=params.page,
        )
        if not events:
            return ToolResult("No events found matching the search criteria.")
        return ToolResult(as_json([event_summary(e) for e in events]))

    @registry.tool(
        "misp_get_event",
        "Get full details of a MISP event including attributes, objects, tags, and related events",
        EventIdParams,
        action="getting event",
    )
    async def get_event(client, params: EventIdParams) -> ToolResult:
        event = await client.get_event(params.event_id)
        return ToolResult(as_json(event_detail(event)))

    @registry.tool(
        "misp_create_event",
        "Create a new MISP event for documenting incidents or threat intelligence",
        CreateEventParams,
        action="creating event",
    )
    async def create_event(client, params: CreateEventParams) -> ToolResult:
        event = await client.create_event(
            info=params.info,
            distribution=params.distribution,
            threat_level_id=params.threat_level,
            analysis=params.analysis,
            date=params.date,
            tags=params.tags,
            published=params.published,
        )
        return ToolResult(as_json({
            "id": event.id,
            "uuid": event.uuid,
            "info": event.info,
            "date": event.date,
            "published": event.published,
            "tags": event.tag_names,
        }))

    @registry.tool(
        "misp_update_event",
        "Update an existing MISP event's metadata (info, threat level, analysis, publish state)",
        UpdateEventParams,
        action="updating event",
    )
    async def update_event(client, params: UpdateEventParams) -> ToolResult:
        event = await client.update_event(
            params.event_id,
            info=params.info,
            threat_level_id=params.threat_level,
            analysis=params.analysis,
            published=params.published,
        )
        return ToolResult(as_json({
            "id": event.id,
            "info": event.info,
            "threat_level": event.threat_level.label,
            "analysis": event.analysis.label,
            "published": event.published,
        }))

    @registry.tool(
        "misp_publish_event",
        "Publish a MISP event, triggering alerts and notifications to sharing partners",
        EventIdParams,
        action="publishing event",
    )
    async def publish_event(client, params: EventIdParams) -> ToolResult:
        result = await client.publish_event(params.event_id)
        return ToolResult(
            result.get("message") or f"Event {params.event_id} published successfully."
        )

    @registry.tool(
        "misp_tag_event",
        "Add or remove a tag from a MISP event (TLP, MITRE ATT&CK, custom tags)",
        TagEventParams,
        action="tagging event",
    )
    async def tag_event(client, params: TagEventParams) -> ToolResult:
        if params.remove:
            await client.untag_event(params.event_id, params.tag)
            return ToolResult(f'Tag "{params.tag}" removed from event {params.event_id}.')
        await client.tag_event(params.event_id, params.tag)
        return ToolResult(f'Tag "{params.tag}" added to event {params.event_id}.')
