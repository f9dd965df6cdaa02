"""Record operations: slice, merge, dedupe and join."""

from __future__ import annotations

from .contracts import (
    DEFAULT_DEDUPE_THRESHOLD,
    BulkMergeOptions,
    BulkMergeResult,
    ConflictStrategy,
    ContextAware,
    ContextStrategy,
    DedupeAlgorithm,
    DedupeOptions,
    DedupeResult,
    JoinOptions,
    JoinType,
    KeepAll,
    LatestWins,
    MatchContext,
    MergeOptions,
    PreferMethod,
    UnknownStrategyError,
    ValueStrategy,
    parse_conflict_strategy,
    strategy_label,
)
from .dedupe import build_signature, calculate_similarity, find_duplicate_clusters, smart_dedupe
from .join import context_join, join_records, record_contexts_match
from .merge import (
    bulk_merge,
    count_sup_values,
    resolve_cell_conflict,
    smart_merge,
    sort_by_source_preference,
)
from .normalize import RecordCollection, normalize_records
from .slicing import by_agent, by_method, by_stability, from_source, slice_records, slice_values

__all__ = [
    "DEFAULT_DEDUPE_THRESHOLD",
    "BulkMergeOptions",
    "BulkMergeResult",
    "ConflictStrategy",
    "ContextAware",
    "ContextStrategy",
    "DedupeAlgorithm",
    "DedupeOptions",
    "DedupeResult",
    "JoinOptions",
    "JoinType",
    "KeepAll",
    "LatestWins",
    "MatchContext",
    "MergeOptions",
    "PreferMethod",
    "RecordCollection",
    "UnknownStrategyError",
    "ValueStrategy",
    "build_signature",
    "bulk_merge",
    "by_agent",
    "by_method",
    "by_stability",
    "calculate_similarity",
    "context_join",
    "count_sup_values",
    "find_duplicate_clusters",
    "join_records",
    "normalize_records",
    "parse_conflict_strategy",
    "record_contexts_match",
    "resolve_cell_conflict",
    "slice_records",
    "slice_values",
    "smart_dedupe",
    "smart_merge",
    "sort_by_source_preference",
    "strategy_label",
]
