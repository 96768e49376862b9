# MISP Bridge: Tool Invocation API
#
# HTTP transport for the tool boundary.  Tool failures are part of the
# payload (``is_error``), not HTTP errors; only unknown names and
# malformed request envelopes produce 4xx responses.

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, ValidationError

from ..client.exceptions import MispError
from ..client.gateway import MispClient
from ..config import load_config
from ..tools import PromptRegistry, ResourceRegistry, ToolRegistry, build_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tools"])

# Lazily built from the environment on first use.
_tools: Optional[ToolRegistry] = None
_resources: Optional[ResourceRegistry] = None
_prompts = PromptRegistry()


def get_tools() -> ToolRegistry:
    global _tools
    if _tools is None:
        _tools = build_registry(MispClient(load_config()))
    return _tools


def get_resources() -> ResourceRegistry:
    global _resources
    if _resources is None:
        _resources = ResourceRegistry(get_tools().client)
    return _resources


def set_client(client: Optional[MispClient]):
    """Allow DI for testing; None resets to lazy construction."""
    global _tools, _resources
    if client is None:
        _tools = None
        _resources = None
        return
    _tools = build_registry(client)
    _resources = ResourceRegistry(client)


# ── Request models ────────────────────────────────────────────────────

class InvokeRequest(BaseModel):
    arguments: Dict[str, Any] = Field(default_factory=dict)


# ── Endpoints ─────────────────────────────────────────────────────────

@router.get("/tools")
async def list_tools():
    return {"tools": get_tools().describe()}


@router.post("/tools/{name}")
async def invoke_tool(name: str, request: Optional[InvokeRequest] = None):
    registry = get_tools()
    if registry.get(name) is None:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")
    result = await registry.invoke(name, request.arguments if request else {})
    return result.to_dict()


@router.get("/resources")
async def list_resources():
    return {"resources": get_resources().describe()}


@router.get("/resources/{name}")
async def read_resource(name: str):
    resources = get_resources()
    if resources.get(name) is None:
        raise HTTPException(status_code=404, detail=f"Unknown resource: {name}")
    try:
        contents = await resources.read(name)
    except MispError as exc:
        return {"contents": [], "is_error": True, "error": exc.to_dict()}
    except Exception as exc:
        logger.exception("Resource %s raised unexpectedly", name)
        return {
            "contents": [],
            "is_error": True,
            "error": {"kind": "internal_error", "message": str(exc)},
        }
    return {"contents": [contents], "is_error": False}


@router.get("/prompts")
async def list_prompts():
    return {"prompts": _prompts.describe()}


@router.post("/prompts/{name}")
async def render_prompt(name: str, request: Optional[InvokeRequest] = None):
    try:
        messages = _prompts.render(name, request.arguments if request else {})
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown prompt: {name}")
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False))
    return {"messages": messages}
