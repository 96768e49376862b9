# MISP Bridge: Tool Registry
#
# A tool is a named coroutine with a pydantic parameter model.  The
# registry validates raw arguments, runs the handler and converts every
# failure into an error ToolResult; nothing raises past ``invoke``.

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, ValidationError

from ..client.exceptions import MispError
from ..client.gateway import MispClient

logger = logging.getLogger(__name__)


class ToolParams(BaseModel):
    """Base for tool parameter models; accepts camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)


class NoParams(ToolParams):
    pass


@dataclass
class ToolResult:
    text: str
    is_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": [{"type": "text", "text": self.text}],
            "is_error": self.is_error,
        }


def as_json(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


Handler = Callable[[MispClient, Any], Awaitable[ToolResult]]


@dataclass
class ToolSpec:
    name: str
    description: str
    params_model: Type[ToolParams]
    handler: Handler
    action: str

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.params_model.model_json_schema(by_alias=True),
        }


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "params"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


class ToolRegistry:
    """Name -> ToolSpec table bound to one MispClient.

    Usage::

        registry = ToolRegistry(client)

        @registry.tool("misp_get_event", "Get an event", GetEventParams,
                       action="getting event")
        async def get_event(client, params):
            ...

        result = await registry.invoke("misp_get_event", {"eventId": "42"})
    """

    def __init__(self, client: MispClient):
        self.client = client
        self._tools: Dict[str, ToolSpec] = {}

    def tool(
        self,
        name: str,
        description: str,
        params_model: Type[ToolParams] = NoParams,
        action: Optional[str] = None,
    ):
        def decorator(fn: Handler) -> Handler:
            if name in self._tools:
                raise ValueError(f"tool {name!r} already registered")
            self._tools[name] = ToolSpec(
                name=name,
                description=description,
                params_model=params_model,
                handler=fn,
                action=action or f"running {name}",
            )
            return fn
        return decorator

    def names(self) -> List[str]:
        return list(self._tools)

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    def describe(self) -> List[Dict[str, Any]]:
        return [spec.describe() for spec in self._tools.values()]

    async def invoke(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        spec = self._tools.get(name)
        if spec is None:
            return ToolResult(f"Unknown tool: {name}", is_error=True)

        try:
            params = spec.params_model.model_validate(arguments or {})
        except ValidationError as exc:
            return ToolResult(
                f"Invalid parameters for {name}: {_validation_message(exc)}",
                is_error=True,
            )

        try:
            return await spec.handler(self.client, params)
        except MispError as exc:
            logger.info("Tool %s failed (%s): %s", name, exc.kind, exc)
            return ToolResult(f"Error {spec.action}: {exc}", is_error=True)
        except Exception as exc:
            logger.exception("Tool %s raised unexpectedly", name)
            return ToolResult(f"Error {spec.action}: {exc}", is_error=True)
