"""Record-level context summaries used for audit messages and joins."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING

from contextops.domain.model import Timeframe

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from contextops.domain.model import Record


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordContext:
    """Dominant context of a record: the most common value per dimension."""

    method: str | None = None
    scale: str | None = None
    source_system: str | None = None
    subject: str | None = None
    definition: str | None = None
    timeframe: Timeframe | None = None


def get_primary_source(record: Record | None) -> str | None:
    """Source system of the most recently timestamped observation."""

    if record is None:
        return None
    latest: datetime | None = None
    source: str | None = None
    for observation in record.observations():
        if observation.timestamp is None:
            continue
        if latest is None or observation.timestamp > latest:
            latest = observation.timestamp
            source = observation.context.source.system
    return source


def _mode(values: Iterable[str | None]) -> str | None:
    counts = Counter(value for value in values if value)
    mode: str | None = None
    best = 0
    # Counter iterates in first-seen order; the later value wins a tie.
    for value, count in counts.items():
        if count >= best:
            mode, best = value, count
    return mode


def get_record_context(record: Record | None) -> RecordContext:
    if record is None:
        return RecordContext()

    contexts = [observation.context for observation in record.observations()]
    starts = [
        context.timeframe.start
        for context in contexts
        if context.timeframe is not None and context.timeframe.start is not None
    ]
    ends = [
        context.timeframe.end
        for context in contexts
        if context.timeframe is not None and context.timeframe.end is not None
    ]
    timeframe = None
    if starts or ends:
        timeframe = Timeframe(
            start=min(starts) if starts else None,
            end=max(ends) if ends else None,
        )

    return RecordContext(
        method=_mode(context.method for context in contexts),
        scale=_mode(context.scale for context in contexts),
        source_system=_mode(context.source.system for context in contexts),
        subject=_mode(context.subject for context in contexts),
        definition=_mode(context.definition for context in contexts),
        timeframe=timeframe,
    )
