"""Context query: timeframes, equivalence, filters, summaries and scoring."""

from __future__ import annotations

from .equivalence import (
    DEFAULT_POLICY,
    DimensionMode,
    EquivalencePolicy,
    context_similarity,
    contexts_equivalent,
    contexts_same_source,
    same_text,
)
from .filters import (
    ContextFilter,
    agent_matches,
    cell_matches_filter,
    get_matching_values,
    matches_definition,
    observation_matches_filter,
    record_matches_filter,
    source_matches,
)
from .scoring import METHOD_PRIORITY, ViewContext, get_best_value, score_value_for_context
from .summary import RecordContext, get_primary_source, get_record_context
from .timeframes import parse_instant, parse_interval, parse_timeframe, timeframes_overlap

__all__ = [
    "DEFAULT_POLICY",
    "METHOD_PRIORITY",
    "ContextFilter",
    "DimensionMode",
    "EquivalencePolicy",
    "RecordContext",
    "ViewContext",
    "agent_matches",
    "cell_matches_filter",
    "context_similarity",
    "contexts_equivalent",
    "contexts_same_source",
    "get_best_value",
    "get_matching_values",
    "get_primary_source",
    "get_record_context",
    "matches_definition",
    "observation_matches_filter",
    "parse_instant",
    "parse_interval",
    "parse_timeframe",
    "record_matches_filter",
    "same_text",
    "score_value_for_context",
    "source_matches",
    "timeframes_overlap",
]
