"""Rank superposed observations by closeness to a viewing context.

Scoring feeds display choices ("which value do I show for this view?").
Merge and dedupe correctness never depends on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from contextops.domain.model import Method, utcnow

from .equivalence import same_text
from .filters import SourcePattern, source_matches

if TYPE_CHECKING:
    from contextops.domain.model import Cell, Clock, Observation

METHOD_PRIORITY: dict[str, int] = {
    Method.MEASURED: 5,
    Method.DECLARED: 4,
    Method.DERIVED: 3,
    Method.INFERRED: 2,
    Method.AGGREGATED: 1,
}

_SCALE_WEIGHT = 10.0
_DEFINITION_WEIGHT = 10.0
_METHOD_WEIGHT = 5.0
_SOURCE_WEIGHT = 5.0
_RECENCY_WEIGHT = 10.0


@dataclass(frozen=True, slots=True, kw_only=True)
class ViewContext:
    scale: str | None = None
    definition: str | None = None
    method: str | None = None
    source: SourcePattern | None = None


def score_value_for_context(
    observation: Observation,
    view: ViewContext | None = None,
    *,
    clock: Clock = utcnow,
) -> float:
    view = view or ViewContext()
    context = observation.context
    score = 0.0

    if view.scale and same_text(context.scale, view.scale):
        score += _SCALE_WEIGHT
    if view.definition and same_text(context.definition, view.definition):
        score += _DEFINITION_WEIGHT
    if view.method and same_text(context.method, view.method):
        score += _METHOD_WEIGHT
    if view.source and source_matches(context.source, view.source):
        score += _SOURCE_WEIGHT

    if observation.timestamp is not None:
        age_days = (clock() - observation.timestamp) / timedelta(days=1)
        score += max(0.0, _RECENCY_WEIGHT - age_days)

    if context.method:
        score += METHOD_PRIORITY.get(context.method.casefold(), 0)
    return score


def get_best_value(
    cell: Cell | None,
    view: ViewContext | None = None,
    *,
    clock: Clock = utcnow,
) -> Observation | None:
    """Highest scoring observation; the earliest one wins ties."""

    if cell is None or not cell.values:
        return None
    if len(cell.values) == 1:
        return cell.values[0]
    return max(
        cell.values,
        key=lambda observation: score_value_for_context(observation, view, clock=clock),
    )
