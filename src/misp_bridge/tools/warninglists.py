# MISP Bridge: Warninglist Tools

from pydantic import Field

from .base import ToolParams, ToolRegistry, ToolResult, as_json


class CheckWarninglistsParams(ToolParams):
    value: str = Field(..., min_length=1, description="Value to check (IP, domain, hash, ...)")


def register(registry: ToolRegistry) -> None:

    @registry.tool(
        "misp_check_warninglists",
        "Check if an observable value appears on any MISP warninglists (known benign lists)",
        CheckWarninglistsParams,
        action="checking warninglists",
    )
    async def check_warninglists(client, params: CheckWarninglistsParams) -> ToolResult:
        matches = await client.check_warninglists(params.value)
        if not matches:
            return ToolResult(
                f'"{params.value}" does not appear on any warninglists. This does not '
                "confirm it is malicious, but it is not a known benign indicator."
            )
        return ToolResult(as_json({
            "value": params.value,
            "on_warninglists": True,
            "match_count": len(matches),
            "warninglists": [
                {
                    "name": m.name,
                    "category": m.category,
                    "description": m.description,
                    "type": m.type,
                }
                for m in matches
            ],
            "note": (
                "This value appears on known benign/false positive lists. "
                "Exercise caution before treating it as malicious."
            ),
        }))
