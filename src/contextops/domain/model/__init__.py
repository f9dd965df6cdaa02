"""Public domain model surface."""

from __future__ import annotations

from contextops.domain.model._internal import Clock, utcnow
from contextops.domain.model.audit import DedupeDecision, DedupeStats, MergeDecision
from contextops.domain.model.context import (
    EMPTY_CONTEXT,
    AgentRef,
    ContextSchema,
    SourceRef,
    Timeframe,
)
from contextops.domain.model.enums import (
    ConflictStrategyKind,
    DedupeAction,
    Granularity,
    JoinStatus,
    MergeAction,
    Method,
    Stability,
)
from contextops.domain.model.identity import generate_record_id
from contextops.domain.model.record import Cell, Observation, Record, RecordSet

__all__ = [  # noqa: RUF022
    # context
    "EMPTY_CONTEXT",
    "AgentRef",
    "ContextSchema",
    "SourceRef",
    "Timeframe",
    # records
    "Cell",
    "Observation",
    "Record",
    "RecordSet",
    "generate_record_id",
    # audit
    "DedupeDecision",
    "DedupeStats",
    "MergeDecision",
    # enums
    "ConflictStrategyKind",
    "DedupeAction",
    "Granularity",
    "JoinStatus",
    "MergeAction",
    "Method",
    "Stability",
    # time
    "Clock",
    "utcnow",
]
