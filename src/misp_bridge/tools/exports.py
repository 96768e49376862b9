# MISP Bridge: Export Tools
#
# Export bodies are opaque text (CSV, STIX XML, IDS rules, hash lists)
# and are passed through unchanged.

from typing import List, Literal, Optional

from pydantic import Field

from .base import ToolParams, ToolRegistry, ToolResult


class ExportIocsParams(ToolParams):
    format: Literal["csv", "stix", "suricata", "snort", "text", "rpz"]
    event_id: Optional[str] = Field(None, alias="eventId", description="Single event, or all when omitted")
    type: Optional[str] = Field(None, description="Filter by attribute type")
    tags: Optional[List[str]] = None
    last: Optional[str] = Field(None, description="Relative time filter (e.g. 1d, 7d)")


class ExportHashesParams(ToolParams):
    format: Literal["md5", "sha1", "sha256"]
    last: Optional[str] = None
    tags: Optional[List[str]] = None


def register(registry: ToolRegistry) -> None:

    @registry.tool(
        "misp_export_iocs",
        "Export IOCs from MISP in various formats (CSV, STIX, Suricata, Snort, text, RPZ)",
        ExportIocsParams,
        action="exporting IOCs",
    )
    async def export_iocs(client, params: ExportIocsParams) -> ToolResult:
        output = await client.export_events(
            params.format,
            event_id=params.event_id,
            type=params.type,
            tags=params.tags,
            last=params.last,
        )
        if not output.strip():
            return ToolResult(
                f"No IOCs found for the specified criteria in {params.format} format."
            )
        return ToolResult(output)

    @registry.tool(
        "misp_export_hashes",
        "Export file hashes from MISP for HIDS integration",
        ExportHashesParams,
        action="exporting hashes",
    )
    async def export_hashes(client, params: ExportHashesParams) -> ToolResult:
        output = await client.export_hashes(params.format, last=params.last, tags=params.tags)
        if not output.strip():
            return ToolResult(f"No {params.format} hashes found for the specified criteria.")
        return ToolResult(output)
