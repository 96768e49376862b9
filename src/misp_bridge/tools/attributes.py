# MISP Bridge: Attribute Tools

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from ..bulk import AttributeSpec, add_attributes_bulk
from ..client.models import Attribute
from .base import ToolParams, ToolRegistry, ToolResult, as_json


def attribute_summary(attr: Attribute) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "id": attr.id,
        "event_id": attr.event_id,
        "type": attr.type,
        "category": attr.category,
        "value": attr.value,
        "to_ids": attr.to_ids,
        "tags": attr.tag_names,
    }
    if attr.comment:
        summary["comment"] = attr.comment
    if attr.event_info is not None:
        summary["event_info"] = attr.event_info
    if attr.related is not None:
        summary["correlations"] = [
            {"value": r.value, "type": r.type, "event_id": r.event_id}
            for r in attr.related
        ]
    return summary


class SearchAttributesParams(ToolParams):
    value: Optional[str] = Field(None, description="IOC value to search")
    type: Optional[str] = Field(None, description="Attribute type (ip-src, domain, md5, ...)")
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    to_ids: Optional[bool] = Field(None, alias="toIds", description="Only IDS-flagged attributes")
    include_correlations: Optional[bool] = Field(None, alias="includeCorrelations")
    last: Optional[str] = Field(None, description="Relative time filter (e.g. 1d, 7d)")
    limit: Optional[int] = Field(None, ge=1, description="Max results (default 50)")


class AddAttributeParams(ToolParams):
    event_id: str = Field(..., alias="eventId", min_length=1)
    type: str = Field(..., min_length=1, description="Attribute type")
    value: str = Field(..., min_length=1, description="The IOC value")
    category: Optional[str] = None
    to_ids: Optional[bool] = Field(None, alias="toIds")
    comment: Optional[str] = None
    distribution: Optional[Literal[0, 1, 2, 3, 4, 5]] = Field(
        None, description="Distribution level (0-4, 5=inherit event)"
    )
    tags: Optional[List[str]] = None


class BulkAttributeItem(ToolParams):
    type: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1)
    category: Optional[str] = None
    to_ids: Optional[bool] = Field(None, alias="toIds")
    comment: Optional[str] = None


class AddAttributesBulkParams(ToolParams):
    event_id: str = Field(..., alias="eventId", min_length=1)
    attributes: List[BulkAttributeItem]


class DeleteAttributeParams(ToolParams):
    attribute_id: str = Field(..., alias="attributeId", min_length=1)
    hard: bool = Field(False, description="Permanent delete instead of soft delete")


def register(registry: ToolRegistry) -> None:

    @registry.tool(
        "misp_search_attributes",
        "Search for specific attributes (IOCs) across all MISP events",
        SearchAttributesParams,
        action="searching attributes",
    )
    async def search_attributes(client, params: SearchAttributesParams) -> ToolResult:
        attributes = await client.search_attributes(
            value=params.value,
            type=params.type,
            category=params.category,
            tags=params.tags,
            to_ids=params.to_ids,
            include_correlations=bool(params.include_correlations),
            last=params.last,
            limit=params.limit,
        )
        if not attributes:
            return ToolResult("No attributes found matching the search criteria.")
        return ToolResult(as_json([attribute_summary(a) for a in attributes]))

    @registry.tool(
        "misp_add_attribute",
        "Add an IOC/attribute to a MISP event",
        AddAttributeParams,
        action="adding attribute",
    )
    async def add_attribute(client, params: AddAttributeParams) -> ToolResult:
        attr = await client.add_attribute(
            params.event_id,
            type=params.type,
            value=params.value,
            category=params.category,
            to_ids=params.to_ids,
            comment=params.comment,
            distribution=params.distribution,
            tags=params.tags,
        )
        return ToolResult(as_json({
            "id": attr.id,
            "event_id": attr.event_id,
            "type": attr.type,
            "category": attr.category,
            "value": attr.value,
            "to_ids": attr.to_ids,
            "tags": attr.tag_names,
        }))

    @registry.tool(
        "misp_add_attributes_bulk",
        "Add multiple attributes (IOCs) to a MISP event at once",
        AddAttributesBulkParams,
        action="adding attributes",
    )
    async def add_bulk(client, params: AddAttributesBulkParams) -> ToolResult:
        specs = [
            AttributeSpec(
                type=item.type,
                value=item.value,
                category=item.category,
                to_ids=item.to_ids,
                comment=item.comment,
            )
            for item in params.attributes
        ]
        report = await add_attributes_bulk(client, params.event_id, specs)
        return ToolResult(as_json(report.to_dict()))

    @registry.tool(
        "misp_delete_attribute",
        "Delete (soft or hard) an attribute from MISP",
        DeleteAttributeParams,
        action="deleting attribute",
    )
    async def delete_attribute(client, params: DeleteAttributeParams) -> ToolResult:
        result = await client.delete_attribute(params.attribute_id, hard=params.hard)
        return ToolResult(
            result.get("message") or f"Attribute {params.attribute_id} deleted successfully."
        )
