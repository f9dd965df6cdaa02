"""Context filters over observations, cells and records.

Filter dimensions are ANDed. A record matches when *any* of its cells holds
at least one observation that satisfies every dimension.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING

from contextops.domain.model import EMPTY_CONTEXT, AgentRef, SourceRef, utcnow

from .equivalence import same_text
from .timeframes import TimeframeSpec, parse_instant, parse_timeframe, timeframes_overlap

if TYPE_CHECKING:
    from datetime import datetime

    from contextops.domain.model import (
        Cell,
        Clock,
        Observation,
        Record,
        Stability,
        Timeframe,
    )

log = logging.getLogger(__name__)

type TextPattern = str | Sequence[str]
type SourcePattern = str | Sequence[str] | SourceRef
type AgentPattern = str | AgentRef
type ObservationPredicate = Callable[[Observation], bool]


@dataclass(frozen=True, slots=True, kw_only=True)
class ContextFilter:
    """Named filter dimensions plus an optional custom predicate."""

    method: TextPattern | None = None
    definition: TextPattern | None = None
    scale: TextPattern | None = None
    timeframe: TimeframeSpec = None
    source: SourcePattern | None = None
    agent: AgentPattern | None = None
    stability: Stability | str | None = None
    updated_after: datetime | str | None = None
    updated_before: datetime | str | None = None
    custom: ObservationPredicate | None = None
    exclude: ContextFilter | None = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, spec.name) is None for spec in fields(self))


def _as_tuple(pattern: TextPattern) -> tuple[str, ...]:
    if isinstance(pattern, str):
        return (pattern,)
    return tuple(pattern)


def _matches_any(actual: str | None, patterns: TextPattern) -> bool:
    if actual is None:
        return False
    return any(same_text(actual, pattern) for pattern in _as_tuple(patterns))


def matches_definition(actual: str | None, pattern: str | None) -> bool:
    """Case-insensitive match; ``*`` in ``pattern`` matches any run of characters."""

    if not pattern:
        return True
    if actual is None:
        return False
    if "*" in pattern:
        regex = ".*".join(re.escape(part) for part in pattern.split("*"))
        return re.fullmatch(regex, actual, flags=re.IGNORECASE) is not None
    return same_text(actual, pattern)


def _contains(actual: str | None, needle: str) -> bool:
    return actual is not None and needle.casefold() in actual.casefold()


def source_matches(actual: SourceRef | None, pattern: SourcePattern | None) -> bool:
    if pattern is None:
        return True
    if actual is None:
        return False
    if isinstance(pattern, SourceRef):
        if pattern.system and not _contains(actual.system, pattern.system):
            return False
        return not (pattern.file and not _contains(actual.file, pattern.file))
    return any(_contains(actual.system, system) for system in _as_tuple(pattern))


def agent_matches(actual: AgentRef | None, pattern: AgentPattern | None) -> bool:
    if pattern is None:
        return True
    if actual is None:
        return False
    if isinstance(pattern, str):
        return actual.id == pattern
    if pattern.type and actual.type != pattern.type:
        return False
    if pattern.id and actual.id != pattern.id:
        return False
    return not (pattern.name and not _contains(actual.name, pattern.name))


def _within_bounds(observation: Observation, context_filter: ContextFilter) -> bool:
    after = parse_instant(context_filter.updated_after)
    before = parse_instant(context_filter.updated_before)
    if after is None and before is None:
        return True
    if observation.timestamp is None:
        return False
    if after is not None and observation.timestamp < after:
        return False
    return not (before is not None and observation.timestamp > before)


def observation_matches_filter(
    observation: Observation | None,
    context_filter: ContextFilter | None,
    *,
    clock: Clock = utcnow,
) -> bool:
    if context_filter is None or context_filter.is_empty:
        return True
    if observation is None:
        return False

    context = observation.context or EMPTY_CONTEXT

    if context_filter.method is not None and not _matches_any(
        context.method, context_filter.method
    ):
        return False

    if context_filter.definition is not None and not any(
        matches_definition(context.definition, pattern)
        for pattern in _as_tuple(context_filter.definition)
    ):
        return False

    if context_filter.scale is not None and not _matches_any(context.scale, context_filter.scale):
        return False

    if not _timeframe_applies(context.timeframe, context_filter, clock=clock):
        return False

    if not source_matches(context.source, context_filter.source):
        return False

    if not agent_matches(context.agent, context_filter.agent):
        return False

    if not _within_bounds(observation, context_filter):
        return False

    if context_filter.custom is not None and not context_filter.custom(observation):
        return False

    return context_filter.exclude is None or not observation_matches_filter(
        observation, context_filter.exclude, clock=clock
    )


def _timeframe_applies(
    actual: Timeframe | None, context_filter: ContextFilter, *, clock: Clock
) -> bool:
    if context_filter.timeframe is None:
        return True
    requested = parse_timeframe(context_filter.timeframe, clock=clock)
    if requested is None:
        log.debug("Timeframe filter %r not applicable", context_filter.timeframe)
        return True
    return timeframes_overlap(actual, requested)


def cell_matches_filter(
    cell: Cell | None, context_filter: ContextFilter | None, *, clock: Clock = utcnow
) -> bool:
    if cell is None or not cell.values:
        return False
    return any(
        observation_matches_filter(observation, context_filter, clock=clock)
        for observation in cell.values
    )


def record_matches_filter(
    record: Record | None, context_filter: ContextFilter | None, *, clock: Clock = utcnow
) -> bool:
    if record is None:
        return False
    context_filter = context_filter or ContextFilter()

    if context_filter.stability is not None and not same_text(
        record.stability, context_filter.stability
    ):
        return False

    if any(
        cell_matches_filter(cell, context_filter, clock=clock) for cell in record.cells.values()
    ):
        return True

    if not record.cells:
        return any(value is not None for value in record.fields.values())
    return False


def get_matching_values(
    cell: Cell | None, context_filter: ContextFilter | None, *, clock: Clock = utcnow
) -> tuple[Observation, ...]:
    if cell is None:
        return ()
    return tuple(
        observation
        for observation in cell.values
        if observation_matches_filter(observation, context_filter, clock=clock)
    )
