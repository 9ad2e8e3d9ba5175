"""Read-through query cache with optimistic mutations and rollback."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Generic, Hashable, NamedTuple, TypeVar

from models import Template, TimeEntry

logger = logging.getLogger(__name__)

R = TypeVar("R")
T = TypeVar("T")

CREATE = "create"
UPDATE = "update"
DELETE = "delete"
MUTATION_KINDS = (CREATE, UPDATE, DELETE)


class EntryQuery(NamedTuple):
    user_id: str
    date_from: date
    date_to: date

    def matches(self, entry: TimeEntry) -> bool:
        return entry.user_id == self.user_id and self.date_from <= entry.date <= self.date_to


class TemplateQuery(NamedTuple):
    user_id: str

    def matches(self, template: Template) -> bool:
        return template.user_id == self.user_id


@dataclass(frozen=True)
class PendingMutation:
    id: int
    kind: str
    record: Any
    snapshots: dict


class QueryCache(Generic[R]):
    """Cached query results plus the mutations still awaiting their commit.

    `data` maps a query to an immutable tuple of records. Records carry an
    `id`; queries provide `matches(record)`.
    """

    def __init__(self, loader: Callable[[Any], list[R]]):
        self._loader = loader
        self._ids = itertools.count(1)
        self.data: dict[Hashable, tuple[R, ...]] = {}
        self.pending_mutations: dict[int, PendingMutation] = {}

    def get(self, query) -> tuple[R, ...]:
        if query not in self.data:
            self.data[query] = tuple(self._loader(query))
        return self.data[query]

    def invalidate(self, predicate: Callable[[Any], bool] | None = None) -> None:
        if predicate is None:
            self.data.clear()
            return
        for query in [q for q in self.data if predicate(q)]:
            del self.data[query]

    def mutate(self, kind: str, record: R, commit: Callable[[], T]) -> T:
        """Apply a change to cached results, then commit it.

        If commit raises, every touched query goes back to its snapshot and
        the error propagates. On success the touched queries are dropped so
        the next read fetches the stored state.
        """
        if kind not in MUTATION_KINDS:
            raise ValueError(f"Unknown mutation kind: {kind}")

        snapshots = {}
        for query, records in list(self.data.items()):
            updated = _apply(kind, query, records, record)
            if updated is not records:
                snapshots[query] = records
                self.data[query] = updated

        mutation = PendingMutation(next(self._ids), kind, record, snapshots)
        self.pending_mutations[mutation.id] = mutation

        try:
            result = commit()
        except Exception:
            logger.warning("Rolling back %s of %r", kind, record, exc_info=True)
            self.data.update(mutation.snapshots)
            raise
        finally:
            del self.pending_mutations[mutation.id]

        for query in snapshots:
            self.data.pop(query, None)
        return result


def _apply(kind: str, query, records: tuple, record) -> tuple:
    """Result of a mutation on one query's records; same object if untouched."""
    matches = query.matches(record)
    present = record.id is not None and any(r.id == record.id for r in records)

    if kind == CREATE:
        return records + (record,) if matches else records
    if kind == DELETE or not matches:
        if not present:
            return records
        return tuple(r for r in records if r.id != record.id)
    if present:
        return tuple(record if r.id == record.id else r for r in records)
    return records + (record,)
