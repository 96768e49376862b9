# MISP Bridge: Read-only Resources
#
# Static-URI views over the instance: attribute type catalog, a small
# statistics summary and the taxonomy list.

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..client.gateway import MispClient

MIME_JSON = "application/json"


@dataclass
class Resource:
    name: str
    uri: str
    description: str
    loader: Callable[[MispClient], Awaitable[Any]]
    mime_type: str = MIME_JSON

    def describe(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "uri": self.uri,
            "description": self.description,
            "mimeType": self.mime_type,
        }


async def _load_types(client: MispClient) -> Dict[str, Any]:
    catalog = await client.describe_types()
    return {
        "types": catalog.types,
        "categories": catalog.categories,
        "category_type_mappings": catalog.category_type_mappings,
        "type_defaults": catalog.type_defaults(),
    }


async def _load_statistics(client: MispClient) -> Dict[str, Any]:
    events = await client.search_events(limit=1)
    catalog = await client.describe_types()
    return {
        "available_types": len(catalog.types),
        "available_categories": len(catalog.categories),
        "sample_event_count": len(events),
        "note": "For full statistics, use misp_search_events with various filters",
    }


async def _load_taxonomies(client: MispClient) -> List[Dict[str, Any]]:
    taxonomies = await client.list_taxonomies()
    return [
        {
            "namespace": t.namespace,
            "description": t.description,
            "version": t.version,
            "enabled": t.enabled,
        }
        for t in taxonomies
    ]


class ResourceRegistry:
    """Named resources readable through the tool transport."""

    def __init__(self, client: MispClient):
        self.client = client
        self._resources: Dict[str, Resource] = {}
        for resource in (
            Resource(
                "types", "misp://types",
                "All supported MISP attribute types and categories with their mappings",
                _load_types,
            ),
            Resource(
                "statistics", "misp://statistics",
                "MISP instance statistics (type and category counts, sample events)",
                _load_statistics,
            ),
            Resource(
                "taxonomies", "misp://taxonomies",
                "Available MISP taxonomies (TLP, MITRE ATT&CK, etc.)",
                _load_taxonomies,
            ),
        ):
            self._resources[resource.name] = resource

    def get(self, name_or_uri: str) -> Optional[Resource]:
        resource = self._resources.get(name_or_uri)
        if resource is not None:
            return resource
        for candidate in self._resources.values():
            if candidate.uri == name_or_uri:
                return candidate
        return None

    def describe(self) -> List[Dict[str, str]]:
        return [r.describe() for r in self._resources.values()]

    async def read(self, name_or_uri: str) -> Dict[str, Any]:
        """Load a resource.  MispError propagates to the caller.

        Raises:
            KeyError: unknown resource.
        """
        resource = self.get(name_or_uri)
        if resource is None:
            raise KeyError(name_or_uri)
        data = await resource.loader(self.client)
        return {
            "uri": resource.uri,
            "mimeType": resource.mime_type,
            "text": json.dumps(data, indent=2),
        }
