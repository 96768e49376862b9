# MISP Bridge: Correlation Engine
#
# Read-only analysis built on the gateway client:
#
#   correlate(value)
#       One attribute search with platform correlations expanded.
#       Attributes are grouped by owning event (response order kept
#       within a group) and every RelatedAttribute tuple is flattened
#       into one list.  Repeated tuples are kept: they mean several
#       source attributes point at the same evidence.
#
#   find_related(event_id)
#       Phase 1 seeds candidates from the event's RelatedEvent
#       back-references (count 0).  Phase 2 searches at most
#       MAX_CORRELATION_VALUES detection-flagged values, one call each,
#       and credits every match from another event: the value joins the
#       candidate's overlap set once, the count grows per matching
#       attribute.  Candidates are ranked by count, descending, with
#       first-seen order kept among equals.

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .client.gateway import MispClient
from .client.models import Attribute, Event

logger = logging.getLogger(__name__)

# Upper bound on per-value searches for one find_related call.
MAX_CORRELATION_VALUES = 20

UNKNOWN_EVENT_INFO = "Unknown"


# ---------------------------------------------------------------------------
# Value correlation results
# ---------------------------------------------------------------------------


@dataclass
class CorrelationTuple:
    """A related attribute reported by the platform's correlation index."""

    value: str
    type: str
    event_id: str

    def to_dict(self) -> Dict[str, str]:
        return {"value": self.value, "type": self.type, "event_id": self.event_id}


@dataclass
class EventGroup:
    """Attributes matching the searched value inside one event."""

    event_id: str
    event_info: str = UNKNOWN_EVENT_INFO
    attributes: List[Attribute] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_info": self.event_info,
            "attributes": [
                {"id": a.id, "type": a.type, "category": a.category, "value": a.value}
                for a in self.attributes
            ],
        }


@dataclass
class CorrelationResult:
    """Outcome of ``correlate``.

    ``correlations`` is None (not an empty list) when no matching
    attribute carried related attributes.
    """

    searched_value: str
    groups: List[EventGroup] = field(default_factory=list)
    total_attributes: int = 0
    correlations: Optional[List[CorrelationTuple]] = None

    @property
    def total_events(self) -> int:
        return len(self.groups)

    @property
    def found(self) -> bool:
        return self.total_attributes > 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "searched_value": self.searched_value,
            "found_in_events": [g.to_dict() for g in self.groups],
            "total_events": self.total_events,
            "total_attributes": self.total_attributes,
        }
        if self.correlations is not None:
            data["correlations"] = [c.to_dict() for c in self.correlations]
        return data


# ---------------------------------------------------------------------------
# Event-relation results
# ---------------------------------------------------------------------------


@dataclass
class RelatedEventEntry:
    """A candidate related event for a source event."""

    event_id: str
    event_info: str = UNKNOWN_EVENT_INFO
    overlapping_iocs: List[str] = field(default_factory=list)
    correlation_count: int = 0

    def record_match(self, value: str) -> None:
        """Credit one matching attribute occurrence for ``value``."""
        if value not in self.overlapping_iocs:
            self.overlapping_iocs.append(value)
        self.correlation_count += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_info": self.event_info,
            "overlapping_iocs": list(self.overlapping_iocs),
            "correlation_count": self.correlation_count,
        }


@dataclass
class RelatedEventsResult:
    event_id: str
    event_info: str = ""
    related_events: List[RelatedEventEntry] = field(default_factory=list)
    searched_values: List[str] = field(default_factory=list)
    nothing_to_correlate: bool = False

    @property
    def total_related(self) -> int:
        return len(self.related_events)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_info": self.event_info,
            "related_events": [e.to_dict() for e in self.related_events],
            "total_related": self.total_related,
        }


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def group_by_event(attributes: Iterable[Attribute]) -> List[EventGroup]:
    """Partition attributes by ``event_id``, in first-seen event order."""
    groups: Dict[str, EventGroup] = {}
    for attr in attributes:
        group = groups.get(attr.event_id)
        if group is None:
            group = EventGroup(
                event_id=attr.event_id,
                event_info=attr.event_info or UNKNOWN_EVENT_INFO,
            )
            groups[attr.event_id] = group
        group.attributes.append(attr)
    return list(groups.values())


def flatten_correlations(attributes: Iterable[Attribute]) -> List[CorrelationTuple]:
    """Collect every RelatedAttribute tuple, duplicates included."""
    return [
        CorrelationTuple(value=rel.value, type=rel.type, event_id=rel.event_id)
        for attr in attributes
        for rel in (attr.related or [])
    ]


def select_search_values(
    attributes: Iterable[Attribute],
    limit: int = MAX_CORRELATION_VALUES,
) -> List[str]:
    """Values of the first ``limit`` detection-flagged attributes."""
    values: List[str] = []
    for attr in attributes:
        if len(values) >= limit:
            break
        if attr.to_ids:
            values.append(attr.value)
    return values


def rank_candidates(candidates: Iterable[RelatedEventEntry]) -> List[RelatedEventEntry]:
    """Sort by correlation count, descending; ties keep first-seen order."""
    return sorted(candidates, key=lambda entry: -entry.correlation_count)


class CorrelationEngine:
    """Cross-event correlation over the MISP gateway.

    Usage::

        engine = CorrelationEngine(client)
        result = await engine.correlate("10.0.0.1")
        related = await engine.find_related("42")
    """

    def __init__(self, client: MispClient, max_values: int = MAX_CORRELATION_VALUES):
        self.client = client
        self.max_values = max_values

    async def correlate(self, value: str) -> CorrelationResult:
        attributes = await self.client.search_attributes(
            value=value, include_correlations=True
        )
        if not attributes:
            return CorrelationResult(searched_value=value)

        correlations = flatten_correlations(attributes)
        return CorrelationResult(
            searched_value=value,
            groups=group_by_event(attributes),
            total_attributes=len(attributes),
            correlations=correlations or None,
        )

    async def find_related(self, event_id: str) -> RelatedEventsResult:
        event = await self.client.get_event(event_id)
        attributes = event.attributes or []

        if not attributes:
            return RelatedEventsResult(
                event_id=event.id,
                event_info=event.info,
                nothing_to_correlate=True,
            )

        candidates = self._seed_from_back_references(event)
        values = select_search_values(attributes, self.max_values)
        logger.debug(
            "Searching %d of %d attribute values for event %s",
            len(values), len(attributes), event.id,
        )

        for value in values:
            matches = await self.client.search_attributes(
                value=value, include_correlations=True
            )
            self._credit_matches(candidates, event.id, value, matches)

        return RelatedEventsResult(
            event_id=event.id,
            event_info=event.info,
            related_events=rank_candidates(candidates.values()),
            searched_values=values,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    @staticmethod
    def _seed_from_back_references(event: Event) -> Dict[str, RelatedEventEntry]:
        candidates: Dict[str, RelatedEventEntry] = {}
        for ref in event.related_events or []:
            candidates[ref.id] = RelatedEventEntry(
                event_id=ref.id,
                event_info=ref.info or UNKNOWN_EVENT_INFO,
            )
        return candidates

    @staticmethod
    def _credit_matches(
        candidates: Dict[str, RelatedEventEntry],
        source_event_id: str,
        value: str,
        matches: Iterable[Attribute],
    ) -> None:
        for match in matches:
            if match.event_id == source_event_id:
                continue
            entry = candidates.get(match.event_id)
            if entry is None:
                entry = RelatedEventEntry(
                    event_id=match.event_id,
                    event_info=match.event_info or UNKNOWN_EVENT_INFO,
                )
                candidates[match.event_id] = entry
            entry.record_match(value)
