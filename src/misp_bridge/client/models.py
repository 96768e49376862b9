# MISP Bridge: Platform Data Models
#
# Request-scoped representations of MISP entities:
#   Event       - container of attributes, objects, tags, related events
#   Attribute   - a single IOC, optionally with platform correlations
#   Sighting    - an observation / false-positive / expiration report
#   WarninglistMatch, Tag, Taxonomy, TypeCatalog - read-only lookups
#
# MISP serialises most numbers as strings and nests optional sections
# only when it chooses to include them.  Optional sections are kept as
# None when absent so that "not loaded" and "empty" stay distinct.
# Parsers raise ValueError/TypeError/KeyError on structural problems;
# the gateway turns those into MalformedResponse.

from dataclasses import asdict, dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional


class ThreatLevel(IntEnum):
    HIGH = 1
    MEDIUM = 2
    LOW = 3
    UNDEFINED = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Analysis(IntEnum):
    INITIAL = 0
    ONGOING = 1
    COMPLETE = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Distribution(IntEnum):
    ORGANIZATION = 0
    COMMUNITY = 1
    CONNECTED_COMMUNITIES = 2
    ALL_COMMUNITIES = 3
    SHARING_GROUP = 4

    @property
    def label(self) -> str:
        return _DISTRIBUTION_LABELS[self]


_DISTRIBUTION_LABELS = {
    Distribution.ORGANIZATION: "Organization",
    Distribution.COMMUNITY: "Community",
    Distribution.CONNECTED_COMMUNITIES: "Connected communities",
    Distribution.ALL_COMMUNITIES: "All communities",
    Distribution.SHARING_GROUP: "Sharing group",
}


class SightingType(IntEnum):
    SIGHTING = 0
    FALSE_POSITIVE = 1
    EXPIRATION = 2

    @property
    def label(self) -> str:
        return _SIGHTING_LABELS[self]


_SIGHTING_LABELS = {
    SightingType.SIGHTING: "Sighting",
    SightingType.FALSE_POSITIVE: "False positive",
    SightingType.EXPIRATION: "Expiration",
}


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def _str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return default
    return int(value)


def _bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _ordinal(enum_cls, value: Any, default):
    """Parse an ordinal enum, falling back to ``default`` for unknown codes."""
    number = _int(value)
    if number is None:
        return default
    try:
        return enum_cls(number)
    except ValueError:
        return default


def _list(payload: Dict[str, Any], key: str) -> Optional[List[Any]]:
    """Return ``payload[key]`` as a list, or None when the key is absent."""
    if key not in payload or payload[key] is None:
        return None
    value = payload[key]
    if not isinstance(value, list):
        raise TypeError(f"expected list for {key!r}, got {type(value).__name__}")
    return value


def _require_mapping(payload: Any, what: str) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise TypeError(f"expected object for {what}, got {type(payload).__name__}")
    return payload


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass
class Tag:
    """A MISP tag.  Tags are unique by name."""

    name: str
    id: str = ""
    colour: str = ""
    exportable: bool = True
    event_count: Optional[int] = None
    attribute_count: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Tag":
        payload = _require_mapping(payload, "Tag")
        return cls(
            name=_str(payload["name"]),
            id=_str(payload.get("id")),
            colour=_str(payload.get("colour")),
            exportable=_bool(payload.get("exportable", True)),
            event_count=_int(payload.get("count", payload.get("event_count"))),
            attribute_count=_int(payload.get("attribute_count")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _tags(payload: Dict[str, Any]) -> List[Tag]:
    """Parse the ``Tag`` section, collapsing duplicate names."""
    seen = set()
    tags: List[Tag] = []
    for raw in _list(payload, "Tag") or []:
        tag = Tag.from_dict(raw)
        if tag.name in seen:
            continue
        seen.add(tag.name)
        tags.append(tag)
    return tags


@dataclass
class RelatedAttribute:
    """A platform-reported correlation: another attribute with the same value."""

    value: str
    type: str
    event_id: str
    id: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "RelatedAttribute":
        payload = _require_mapping(payload, "RelatedAttribute")
        return cls(
            value=_str(payload.get("value")),
            type=_str(payload.get("type")),
            event_id=_str(payload["event_id"]),
            id=_str(payload.get("id")),
        )


@dataclass
class Attribute:
    """Indicator of Compromise belonging to an event."""

    id: str
    event_id: str
    type: str
    category: str = ""
    value: str = ""
    to_ids: bool = False
    uuid: str = ""
    comment: str = ""
    distribution: Optional[int] = None
    deleted: bool = False
    tags: List[Tag] = field(default_factory=list)
    event_info: Optional[str] = None
    related: Optional[List[RelatedAttribute]] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Attribute":
        payload = _require_mapping(payload, "Attribute")
        event = payload.get("Event")
        related_raw = _list(payload, "RelatedAttribute")
        return cls(
            id=_str(payload["id"]),
            event_id=_str(payload.get("event_id")),
            type=_str(payload.get("type")),
            category=_str(payload.get("category")),
            value=_str(payload.get("value")),
            to_ids=_bool(payload.get("to_ids", False)),
            uuid=_str(payload.get("uuid")),
            comment=_str(payload.get("comment")),
            distribution=_int(payload.get("distribution")),
            deleted=_bool(payload.get("deleted", False)),
            tags=_tags(payload),
            event_info=_str(event.get("info")) if isinstance(event, dict) and "info" in event else None,
            related=(
                [RelatedAttribute.from_dict(r) for r in related_raw]
                if related_raw is not None
                else None
            ),
        )

    @property
    def tag_names(self) -> List[str]:
        return [t.name for t in self.tags]


@dataclass
class MispObject:
    """Composite object grouping several attributes (e.g. file, domain-ip)."""

    id: str
    name: str
    meta_category: str = ""
    description: str = ""
    attributes: List[Attribute] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "MispObject":
        payload = _require_mapping(payload, "Object")
        return cls(
            id=_str(payload.get("id")),
            name=_str(payload.get("name")),
            meta_category=_str(payload.get("meta-category", payload.get("meta_category"))),
            description=_str(payload.get("description")),
            attributes=[Attribute.from_dict(a) for a in _list(payload, "Attribute") or []],
        )


@dataclass
class Galaxy:
    name: str
    type: str = ""
    clusters: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Galaxy":
        payload = _require_mapping(payload, "Galaxy")
        return cls(
            name=_str(payload.get("name")),
            type=_str(payload.get("type")),
            clusters=[_str(c.get("value")) for c in _list(payload, "GalaxyCluster") or []],
        )


@dataclass
class EventRef:
    """Back-reference to a related event as embedded by the platform."""

    id: str
    info: str = ""
    date: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EventRef":
        payload = _require_mapping(payload, "RelatedEvent")
        inner = _require_mapping(payload.get("Event", payload), "RelatedEvent.Event")
        return cls(
            id=_str(inner["id"]),
            info=_str(inner.get("info")),
            date=_str(inner.get("date")),
        )


@dataclass
class Event:
    """A MISP event.

    ``attribute_count`` is advisory metadata reported by the platform;
    when ``attributes`` is loaded, ``len(attributes)`` is authoritative.
    """

    id: str
    info: str
    uuid: str = ""
    date: str = ""
    threat_level: ThreatLevel = ThreatLevel.UNDEFINED
    analysis: Analysis = Analysis.INITIAL
    distribution: Distribution = Distribution.ORGANIZATION
    published: bool = False
    org: Optional[str] = None
    attribute_count: Optional[int] = None
    tags: List[Tag] = field(default_factory=list)
    attributes: Optional[List[Attribute]] = None
    objects: Optional[List[MispObject]] = None
    galaxies: Optional[List[Galaxy]] = None
    related_events: Optional[List[EventRef]] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Event":
        payload = _require_mapping(payload, "Event")
        event_id = _str(payload["id"])
        orgc = payload.get("Orgc") or payload.get("Org")

        attributes_raw = _list(payload, "Attribute")
        attributes = None
        if attributes_raw is not None:
            attributes = [Attribute.from_dict(a) for a in attributes_raw]
            for attr in attributes:
                if attr.event_id and attr.event_id != event_id:
                    raise ValueError(
                        f"attribute {attr.id} claims event {attr.event_id} "
                        f"but is nested under event {event_id}"
                    )

        objects_raw = _list(payload, "Object")
        galaxies_raw = _list(payload, "Galaxy")
        related_raw = _list(payload, "RelatedEvent")
        return cls(
            id=event_id,
            info=_str(payload.get("info")),
            uuid=_str(payload.get("uuid")),
            date=_str(payload.get("date")),
            threat_level=_ordinal(ThreatLevel, payload.get("threat_level_id"), ThreatLevel.UNDEFINED),
            analysis=_ordinal(Analysis, payload.get("analysis"), Analysis.INITIAL),
            distribution=_ordinal(Distribution, payload.get("distribution"), Distribution.ORGANIZATION),
            published=_bool(payload.get("published", False)),
            org=_str(orgc.get("name")) if isinstance(orgc, dict) and orgc.get("name") else None,
            attribute_count=_int(payload.get("attribute_count")),
            tags=_tags(payload),
            attributes=attributes,
            objects=[MispObject.from_dict(o) for o in objects_raw] if objects_raw is not None else None,
            galaxies=[Galaxy.from_dict(g) for g in galaxies_raw] if galaxies_raw is not None else None,
            related_events=[EventRef.from_dict(r) for r in related_raw] if related_raw is not None else None,
        )

    @property
    def tag_names(self) -> List[str]:
        return [t.name for t in self.tags]


@dataclass
class Sighting:
    id: str
    attribute_id: str
    event_id: str = ""
    type: SightingType = SightingType.SIGHTING
    source: str = ""
    date_sighting: str = ""
    org_id: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Sighting":
        payload = _require_mapping(payload, "Sighting")
        return cls(
            id=_str(payload["id"]),
            attribute_id=_str(payload.get("attribute_id")),
            event_id=_str(payload.get("event_id")),
            type=_ordinal(SightingType, payload.get("type"), SightingType.SIGHTING),
            source=_str(payload.get("source")),
            date_sighting=_str(payload.get("date_sighting")),
            org_id=_str(payload.get("org_id")),
        )


@dataclass
class WarninglistMatch:
    id: str
    name: str
    type: str = ""
    description: str = ""
    category: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "WarninglistMatch":
        payload = _require_mapping(payload, "Warninglist")
        return cls(
            id=_str(payload.get("id")),
            name=_str(payload["name"]),
            type=_str(payload.get("type")),
            description=_str(payload.get("description")),
            category=_str(payload.get("category")),
        )


@dataclass
class Taxonomy:
    namespace: str
    description: str = ""
    version: str = ""
    enabled: bool = False

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Taxonomy":
        payload = _require_mapping(payload, "Taxonomy")
        return cls(
            namespace=_str(payload["namespace"]),
            description=_str(payload.get("description")),
            version=_str(payload.get("version")),
            enabled=_bool(payload.get("enabled", False)),
        )


@dataclass
class TypeCatalog:
    """Attribute types, categories and their default mappings."""

    types: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    category_type_mappings: Dict[str, List[str]] = field(default_factory=dict)
    sane_defaults: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "TypeCatalog":
        payload = _require_mapping(payload, "describeTypes.result")
        return cls(
            types=list(_list(payload, "types") or []),
            categories=list(_list(payload, "categories") or []),
            category_type_mappings=dict(payload.get("category_type_mappings") or {}),
            sane_defaults=dict(payload.get("sane_defaults") or {}),
        )

    def type_defaults(self) -> List[Dict[str, Any]]:
        return [
            {
                "type": type_name,
                "default_category": info.get("default_category"),
                "to_ids": _bool(info.get("to_ids", 0)),
            }
            for type_name, info in self.sane_defaults.items()
        ]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
