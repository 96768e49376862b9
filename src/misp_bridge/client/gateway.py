# MISP Bridge: Gateway Client
#
# Single chokepoint for every call to the MISP REST API.  Each public
# coroutine maps to one remote capability, builds the request body
# (omitting unset filters, converting booleans to 0/1 where MISP wants
# integers), sends it through the HttpTransport and parses the response
# into the models in ``models.py``.
#
# Failure contract:
#   - non-2xx status       -> Unauthorized/Forbidden/NotFound/
#                             MethodNotAllowed/RemoteError
#   - deadline elapsed     -> MispTimeout
#   - network failure      -> TransportFailure
#   - unreadable 2xx body  -> MalformedResponse (never an empty default)
#   - bad caller input     -> InvalidRequest, before any request
# Nothing is retried or cached.

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import quote

from ..config import MispConfig
from .exceptions import (
    InvalidRequest,
    MalformedResponse,
    MispError,
    error_for_status,
)
from .models import (
    Attribute,
    Event,
    Sighting,
    SightingType,
    Tag,
    Taxonomy,
    TypeCatalog,
    WarninglistMatch,
)
from .transport import HttpTransport

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 50
SNIPPET_LENGTH = 200

EXPORT_ENDPOINTS: Dict[str, str] = {
    "csv": "/events/csv/download",
    "stix": "/events/stix/download",
    "suricata": "/events/nids/suricata/download",
    "snort": "/events/nids/snort/download",
    "text": "/attributes/text/download",
    "rpz": "/attributes/rpz/download",
}

HASH_FORMATS = ("md5", "sha1", "sha256")


def _put(body: Dict[str, Any], key: str, value: Any) -> None:
    """Set ``body[key]`` unless the value is unset (None or empty string)."""
    if value is None or value == "":
        return
    body[key] = value


def _flag(value: Optional[bool]) -> Optional[int]:
    if value is None:
        return None
    return 1 if value else 0


def _segment(value: Any) -> str:
    """Escape a caller-supplied id so it stays a single path segment."""
    return quote(str(value), safe="")


def _extract_detail(text: str) -> str:
    """Best-effort human-readable message from an error body."""
    try:
        parsed = json.loads(text)
    except ValueError:
        return text
    if isinstance(parsed, dict):
        for key in ("message", "errors", "name"):
            detail = parsed.get(key)
            if detail:
                return detail if isinstance(detail, str) else json.dumps(detail)
    return text


class MispClient:
    """Async client for the MISP REST API.

    Usage::

        client = MispClient(load_config())
        events = await client.search_events(value="evil.com", last="7d")
    """

    def __init__(self, config: MispConfig, transport: Optional[HttpTransport] = None):
        self.config = config
        self._transport = transport or HttpTransport(
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
        )

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": self.config.api_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def _send(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, str]] = None,
    ) -> str:
        """Perform the request and return the body of a 2xx response."""
        resp = await self._transport.request(
            method,
            f"{self.config.url}{path}",
            headers=self._build_headers(),
            body=body,
            params=params,
        )
        logger.debug(
            "MISP %s %s -> %d (%.1f ms)",
            method, path, resp.status_code, resp.elapsed_ms,
        )

        if not resp.ok:
            error = error_for_status(resp.status_code, _extract_detail(resp.text))
            logger.warning("MISP %s %s failed: %s", method, path, error)
            raise error

        return resp.text

    async def _request_json(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        text = await self._send(method, path, body, params)
        try:
            return json.loads(text)
        except ValueError:
            raise MalformedResponse("body is not valid JSON", text[:SNIPPET_LENGTH])

    async def _request_text(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, str]] = None,
    ) -> str:
        return await self._send(method, path, body, params)

    @staticmethod
    def _parse(what: str, parser: Callable[[Any], Any], data: Any) -> Any:
        """Run a model parser, reporting structural problems as MalformedResponse."""
        try:
            return parser(data)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise MalformedResponse(f"unexpected {what} structure ({exc})")

    @staticmethod
    def _unwrap(data: Any, key: str) -> Any:
        if not isinstance(data, dict) or key not in data:
            raise MalformedResponse(f"missing {key!r} in response")
        return data[key]

    # ------------------------------------------------------------------
    # Tag pipeline: create -> tag each -> refetch
    # ------------------------------------------------------------------

    async def _apply_tags(
        self,
        tag_call: Callable[[str, str], Awaitable[Any]],
        entity_id: str,
        tags: List[str],
    ) -> List[str]:
        """Apply tags one at a time, continuing past failures.

        The entity already exists remotely, so a failed tag call is not
        rolled back; it is logged and the next tag is attempted.

        Returns:
            Names of the tags whose call failed.
        """
        failed: List[str] = []
        for tag in tags:
            try:
                await tag_call(entity_id, tag)
            except MispError as exc:
                failed.append(tag)
                logger.warning("Tagging %s with %r failed: %s", entity_id, tag, exc)
        return failed

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def search_events(
        self,
        value: Optional[str] = None,
        type: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[List[str]] = None,
        eventid: Optional[str] = None,
        org: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        last: Optional[str] = None,
        published: Optional[bool] = None,
        limit: Optional[int] = None,
        page: Optional[int] = None,
    ) -> List[Event]:
        body: Dict[str, Any] = {
            "returnFormat": "json",
            "limit": limit if limit is not None else DEFAULT_SEARCH_LIMIT,
        }
        _put(body, "value", value)
        _put(body, "type", type)
        _put(body, "category", category)
        _put(body, "tags", tags)
        _put(body, "eventid", eventid)
        _put(body, "org", org)
        _put(body, "from", date_from)
        _put(body, "to", date_to)
        _put(body, "last", last)
        _put(body, "published", _flag(published))
        if page:
            body["page"] = page

        data = await self._request_json("POST", "/events/restSearch", body)
        wrappers = self._unwrap(data, "response")
        if not isinstance(wrappers, list):
            raise MalformedResponse("event search 'response' is not a list")
        return self._parse(
            "event search",
            lambda rows: [Event.from_dict(row["Event"]) for row in rows],
            wrappers,
        )

    async def get_event(self, event_id: str) -> Event:
        data = await self._request_json("GET", f"/events/view/{_segment(event_id)}")
        return self._parse("event", Event.from_dict, self._unwrap(data, "Event"))

    async def create_event(
        self,
        info: str,
        distribution: int,
        threat_level_id: int,
        analysis: int,
        date: Optional[str] = None,
        tags: Optional[List[str]] = None,
        published: Optional[bool] = None,
    ) -> Event:
        """Create an event, then tag it and refetch when tags are given."""
        event_data: Dict[str, Any] = {
            "info": info,
            "distribution": int(distribution),
            "threat_level_id": int(threat_level_id),
            "analysis": int(analysis),
        }
        _put(event_data, "date", date)
        if published:
            event_data["published"] = True

        data = await self._request_json("POST", "/events/add", {"Event": event_data})
        created = self._parse("event", Event.from_dict, self._unwrap(data, "Event"))

        if not tags:
            return created

        await self._apply_tags(self.tag_event, created.id, tags)
        return await self.get_event(created.id)

    async def update_event(
        self,
        event_id: str,
        info: Optional[str] = None,
        threat_level_id: Optional[int] = None,
        analysis: Optional[int] = None,
        published: Optional[bool] = None,
    ) -> Event:
        event_data: Dict[str, Any] = {}
        if info is not None:
            event_data["info"] = info
        if threat_level_id is not None:
            event_data["threat_level_id"] = int(threat_level_id)
        if analysis is not None:
            event_data["analysis"] = int(analysis)
        if published is not None:
            event_data["published"] = published

        data = await self._request_json(
            "POST", f"/events/edit/{_segment(event_id)}", {"Event": event_data}
        )
        return self._parse("event", Event.from_dict, self._unwrap(data, "Event"))

    async def publish_event(self, event_id: str) -> Dict[str, Any]:
        data = await self._request_json("POST", f"/events/publish/{_segment(event_id)}")
        if not isinstance(data, dict):
            raise MalformedResponse("publish response is not an object")
        return data

    async def tag_event(self, event_id: str, tag: str) -> Any:
        return await self._request_json(
            "POST", "/events/addTag", {"event": event_id, "tag": tag}
        )

    async def untag_event(self, event_id: str, tag: str) -> Any:
        return await self._request_json(
            "POST", "/events/removeTag", {"event": event_id, "tag": tag}
        )

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    async def search_attributes(
        self,
        value: Optional[str] = None,
        type: Optional[str] = None,
        category: Optional[str] = None,
        tags: Optional[List[str]] = None,
        to_ids: Optional[bool] = None,
        include_correlations: bool = False,
        last: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Attribute]:
        body: Dict[str, Any] = {
            "returnFormat": "json",
            "limit": limit if limit is not None else DEFAULT_SEARCH_LIMIT,
        }
        _put(body, "value", value)
        _put(body, "type", type)
        _put(body, "category", category)
        _put(body, "tags", tags)
        _put(body, "to_ids", _flag(to_ids))
        if include_correlations:
            body["includeCorrelations"] = 1
        _put(body, "last", last)

        data = await self._request_json("POST", "/attributes/restSearch", body)
        response = self._unwrap(data, "response")
        # MISP answers an empty search with either [] or {"Attribute": []}.
        if isinstance(response, list) and not response:
            return []
        if not isinstance(response, dict):
            raise MalformedResponse("attribute search 'response' is not an object")
        rows = response.get("Attribute") or []
        if not isinstance(rows, list):
            raise MalformedResponse("attribute search 'Attribute' is not a list")
        return self._parse(
            "attribute search",
            lambda items: [Attribute.from_dict(item) for item in items],
            rows,
        )

    async def get_attribute(self, attribute_id: str) -> Attribute:
        data = await self._request_json("GET", f"/attributes/view/{_segment(attribute_id)}")
        return self._parse("attribute", Attribute.from_dict, self._unwrap(data, "Attribute"))

    async def add_attribute(
        self,
        event_id: str,
        type: str,
        value: str,
        category: Optional[str] = None,
        to_ids: Optional[bool] = None,
        comment: Optional[str] = None,
        distribution: Optional[int] = None,
        tags: Optional[List[str]] = None,
    ) -> Attribute:
        """Add an attribute, then tag it and refetch when tags are given."""
        attr_data: Dict[str, Any] = {"type": type, "value": value}
        _put(attr_data, "category", category)
        if to_ids is not None:
            attr_data["to_ids"] = to_ids
        _put(attr_data, "comment", comment)
        if distribution is not None:
            attr_data["distribution"] = int(distribution)

        data = await self._request_json("POST", f"/attributes/add/{_segment(event_id)}", attr_data)
        created = self._parse("attribute", Attribute.from_dict, self._unwrap(data, "Attribute"))

        if not tags:
            return created

        await self._apply_tags(self.tag_attribute, created.id, tags)
        return await self.get_attribute(created.id)

    async def tag_attribute(self, attribute_id: str, tag: str) -> Any:
        return await self._request_json(
            "POST", "/attributes/addTag", {"attribute": attribute_id, "tag": tag}
        )

    async def untag_attribute(self, attribute_id: str, tag: str) -> Any:
        return await self._request_json(
            "POST", "/attributes/removeTag", {"attribute": attribute_id, "tag": tag}
        )

    async def delete_attribute(self, attribute_id: str, hard: bool = False) -> Dict[str, Any]:
        body = {"hard": 1} if hard else {}
        data = await self._request_json("POST", f"/attributes/delete/{_segment(attribute_id)}", body)
        if not isinstance(data, dict):
            raise MalformedResponse("delete response is not an object")
        return data

    async def describe_types(self) -> TypeCatalog:
        data = await self._request_json("GET", "/attributes/describeTypes")
        return self._parse("describeTypes", TypeCatalog.from_dict, self._unwrap(data, "result"))

    # ------------------------------------------------------------------
    # Tags & taxonomies
    # ------------------------------------------------------------------

    async def list_tags(self, search: Optional[str] = None) -> List[Tag]:
        path = f"/tags/search/{_segment(search)}" if search else "/tags"
        data = await self._request_json("GET", path)

        if isinstance(data, dict) and "Tag" in data:
            rows = data["Tag"] or []
            if not isinstance(rows, list):
                raise MalformedResponse("'Tag' is not a list")
            return self._parse("tag list", lambda items: [Tag.from_dict(t) for t in items], rows)
        if isinstance(data, list):
            # The search endpoint wraps each tag: [{"Tag": {...}, "Taxonomy": ...}]
            return self._parse(
                "tag search",
                lambda items: [Tag.from_dict(item.get("Tag", item)) for item in items],
                data,
            )
        raise MalformedResponse("unexpected tag list structure")

    async def list_taxonomies(self) -> List[Taxonomy]:
        data = await self._request_json("GET", "/taxonomies")
        if not isinstance(data, list):
            raise MalformedResponse("taxonomy list is not a list")
        return self._parse(
            "taxonomy list",
            lambda rows: [Taxonomy.from_dict(row["Taxonomy"]) for row in rows],
            data,
        )

    # ------------------------------------------------------------------
    # Sightings & warninglists
    # ------------------------------------------------------------------

    async def add_sighting(
        self,
        type: int = SightingType.SIGHTING,
        attribute_id: Optional[str] = None,
        value: Optional[str] = None,
        source: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> Sighting:
        """Record a sighting by attribute id or by literal value.

        Raises:
            InvalidRequest: neither ``attribute_id`` nor ``value`` given.
        """
        if not attribute_id and not value:
            raise InvalidRequest("Either attributeId or value must be provided.")

        body: Dict[str, Any] = {"type": int(type)}
        _put(body, "value", value)
        _put(body, "source", source)
        _put(body, "timestamp", timestamp)

        path = f"/sightings/add/{_segment(attribute_id)}" if attribute_id else "/sightings/add"
        data = await self._request_json("POST", path, body)
        return self._parse("sighting", Sighting.from_dict, self._unwrap(data, "Sighting"))

    async def check_warninglists(self, value: str) -> List[WarninglistMatch]:
        """Return the warninglists that contain ``value`` (empty when none)."""
        data = await self._request_json("POST", "/warninglists/checkValue", [value])
        if isinstance(data, list) and not data:
            return []
        if not isinstance(data, dict):
            raise MalformedResponse("warninglist check is not an object")
        matches = data.get(value) or []
        if not isinstance(matches, list):
            raise MalformedResponse("warninglist matches are not a list")
        return self._parse(
            "warninglist match",
            lambda rows: [WarninglistMatch.from_dict(row) for row in rows],
            matches,
        )

    # ------------------------------------------------------------------
    # Exports (opaque text)
    # ------------------------------------------------------------------

    async def export_events(
        self,
        format: str,
        event_id: Optional[str] = None,
        type: Optional[str] = None,
        tags: Optional[List[str]] = None,
        last: Optional[str] = None,
    ) -> str:
        endpoint = EXPORT_ENDPOINTS.get(format)
        if endpoint is None:
            raise InvalidRequest(
                f"Unsupported export format: {format}. "
                f"Supported: {', '.join(EXPORT_ENDPOINTS)}"
            )

        body: Dict[str, Any] = {}
        _put(body, "eventid", event_id)
        _put(body, "type", type)
        _put(body, "tags", tags)
        _put(body, "last", last)
        return await self._request_text("POST", endpoint, body)

    async def export_hashes(
        self,
        format: str,
        last: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> str:
        if format not in HASH_FORMATS:
            raise InvalidRequest(
                f"Unsupported hash format: {format}. Supported: {', '.join(HASH_FORMATS)}"
            )

        params: Dict[str, str] = {}
        _put(params, "last", last)
        if tags:
            params["tags"] = ",".join(tags)
        return await self._request_text(
            "GET", f"/events/hids/{format}/download", params=params or None
        )
