# MISP Bridge: Bulk Operation Executor
#
# Applies one single-item gateway operation across an ordered batch.
# MISP has no transactional batch endpoint, so each item is committed or
# failed on its own: a failure is recorded against that item and the
# batch moves on.  Items run sequentially, in input order.

import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from .client.exceptions import MispError
from .client.gateway import MispClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BulkItemResult:
    """Outcome of one item in a batch."""

    def __init__(self, index: int, item: Dict[str, Any]):
        self.index = index
        self.item = item
        self.id: Optional[str] = None
        self.error: Optional[str] = None
        self.error_kind: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.item)
        if self.success:
            data["id"] = self.id
        else:
            data["error"] = self.error
        return data


class BulkReport:
    """Summary of a batch run; ``results`` keeps input order."""

    def __init__(self):
        self.results: List[BulkItemResult] = []
        self.duration_ms: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }


class BulkExecutor(Generic[T]):
    """Run a single-item operation over a batch with per-item isolation.

    Args:
        operation: Coroutine function performing one unit of work.
        identify: Extracts the created identity from the operation's
            return value (default: its ``id`` attribute).
        describe: Summarises an input item for the report.

    Usage::

        executor = BulkExecutor(lambda spec: client.add_attribute(eid, **spec))
        report = await executor.run(specs)
    """

    def __init__(
        self,
        operation: Callable[[T], Awaitable[Any]],
        identify: Optional[Callable[[Any], str]] = None,
        describe: Optional[Callable[[T], Dict[str, Any]]] = None,
    ):
        self._operation = operation
        self._identify = identify or (lambda created: str(created.id))
        self._describe = describe or (lambda item: {})

    async def run(self, items: Sequence[T]) -> BulkReport:
        report = BulkReport()
        started = time.monotonic()

        for index, item in enumerate(items):
            result = BulkItemResult(index, self._describe(item))
            try:
                created = await self._operation(item)
                result.id = self._identify(created)
            except MispError as exc:
                result.error = str(exc)
                result.error_kind = exc.kind
                logger.warning("Bulk item %d failed: %s", index, exc)
            report.results.append(result)

        report.duration_ms = (time.monotonic() - started) * 1000.0
        logger.info(
            "Bulk run finished: %d total, %d succeeded, %d failed",
            report.total, report.succeeded, report.failed,
        )
        return report


@dataclass
class AttributeSpec:
    """One attribute to add in a bulk request."""

    type: str
    value: str
    category: Optional[str] = None
    to_ids: Optional[bool] = None
    comment: Optional[str] = None


async def add_attributes_bulk(
    client: MispClient,
    event_id: str,
    specs: Sequence[AttributeSpec],
) -> BulkReport:
    """Add each attribute to ``event_id``, isolating per-item failures."""

    async def add_one(spec: AttributeSpec):
        return await client.add_attribute(
            event_id,
            type=spec.type,
            value=spec.value,
            category=spec.category,
            to_ids=spec.to_ids,
            comment=spec.comment,
        )

    executor: BulkExecutor[AttributeSpec] = BulkExecutor(
        add_one,
        describe=lambda spec: {"value": spec.value, "type": spec.type},
    )
    return await executor.run(specs)
