# MISP Bridge: Sighting Tools

from typing import Literal, Optional

from pydantic import Field

from ..client.models import SightingType
from .base import ToolParams, ToolRegistry, ToolResult, as_json


class AddSightingParams(ToolParams):
    attribute_id: Optional[str] = Field(None, alias="attributeId", description="Attribute ID (or value)")
    value: Optional[str] = Field(None, description="Attribute value (or attributeId)")
    type: Literal[0, 1, 2] = Field(..., description="0=Sighting, 1=False positive, 2=Expiration")
    source: Optional[str] = Field(None, description="Sensor, organisation, ...")
    timestamp: Optional[str] = Field(None, description="Unix timestamp of the sighting")


def register(registry: ToolRegistry) -> None:

    @registry.tool(
        "misp_add_sighting",
        "Report a sighting of an IOC (observed in the wild, false positive, or expiration)",
        AddSightingParams,
        action="adding sighting",
    )
    async def add_sighting(client, params: AddSightingParams) -> ToolResult:
        sighting = await client.add_sighting(
            type=params.type,
            attribute_id=params.attribute_id,
            value=params.value,
            source=params.source,
            timestamp=params.timestamp,
        )
        return ToolResult(as_json({
            "id": sighting.id,
            "type": SightingType(params.type).label,
            "attribute_id": sighting.attribute_id,
            "event_id": sighting.event_id,
            "source": sighting.source,
            "date_sighting": sighting.date_sighting,
        }))
