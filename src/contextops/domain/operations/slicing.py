"""Select records, or individual observations, matching a context filter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from contextops.domain.context import (
    ContextFilter,
    get_matching_values,
    record_matches_filter,
)
from contextops.domain.model import utcnow

from .normalize import normalize_records

if TYPE_CHECKING:
    from collections.abc import Sequence

    from contextops.domain.model import AgentRef, Cell, Clock, Record, Stability

    from .normalize import RecordCollection


def slice_records(
    records: RecordCollection,
    context_filter: ContextFilter | None,
    *,
    clock: Clock = utcnow,
) -> list[Record]:
    """Return whole records for which ``record_matches_filter`` holds."""

    return [
        record
        for record in normalize_records(records)
        if record_matches_filter(record, context_filter, clock=clock)
    ]


def slice_values(
    records: RecordCollection,
    context_filter: ContextFilter | None,
    *,
    clock: Clock = utcnow,
) -> list[Record]:
    """Return records trimmed to their matching observations.

    Cells without a matching observation are dropped; records left without
    any cell are omitted rather than returned empty.
    """

    sliced: list[Record] = []
    for record in normalize_records(records):
        cells: dict[str, Cell] = {}
        for field_id, cell in record.cells.items():
            matching = get_matching_values(cell, context_filter, clock=clock)
            if matching:
                cells[field_id] = cell.with_values(matching)
        if cells:
            sliced.append(record.evolve(cells=cells))
    return sliced


def from_source(records: RecordCollection, systems: str | Sequence[str]) -> list[Record]:
    """Records with at least one observation from any of ``systems`` (substring match)."""

    patterns = (systems,) if isinstance(systems, str) else tuple(systems)
    return slice_records(records, ContextFilter(source=patterns))


def by_agent(records: RecordCollection, agent: str | AgentRef) -> list[Record]:
    """Records touched by an agent id, or by agents matching an ``AgentRef`` pattern."""

    return slice_records(records, ContextFilter(agent=agent))


def by_method(records: RecordCollection, methods: str | Sequence[str]) -> list[Record]:
    return slice_records(records, ContextFilter(method=methods))


def by_stability(records: RecordCollection, classification: Stability | str) -> list[Record]:
    return slice_records(records, ContextFilter(stability=classification))
