"""Shared operation contracts: strategies, options and results.

Conflict strategies form a closed tagged union discriminated by
``ConflictStrategyKind``; resolvers ``match`` on the concrete classes and
end with ``assert_never`` so a new strategy cannot be silently ignored.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Literal, Self, assert_never

from contextops.domain.context import DEFAULT_POLICY, EquivalencePolicy
from contextops.domain.model import ConflictStrategyKind

if TYPE_CHECKING:
    from contextops.config import EngineConfig
    from contextops.domain.model import (
        DedupeDecision,
        DedupeStats,
        MergeDecision,
        Record,
    )

DEFAULT_DEDUPE_THRESHOLD = 0.85


class UnknownStrategyError(ValueError):
    """Raised when a strategy name does not map to a known strategy."""

    def __init__(self, name: str, *, kind: str) -> None:
        self.name = name
        self.kind = kind
        super().__init__(f"Unknown {kind} strategy: {name!r}")


@dataclass(frozen=True, slots=True)
class ContextAware:
    """Same context keeps the newer observation; different contexts superpose."""

    kind: Literal[ConflictStrategyKind.CONTEXT_AWARE] = ConflictStrategyKind.CONTEXT_AWARE


@dataclass(frozen=True, slots=True)
class LatestWins:
    kind: Literal[ConflictStrategyKind.LATEST_WINS] = ConflictStrategyKind.LATEST_WINS


@dataclass(frozen=True, slots=True)
class PreferMethod:
    method: str
    kind: Literal[ConflictStrategyKind.PREFER_METHOD] = ConflictStrategyKind.PREFER_METHOD


@dataclass(frozen=True, slots=True)
class KeepAll:
    """Unconditional concatenation; superposes even identical contexts."""

    kind: Literal[ConflictStrategyKind.KEEP_ALL] = ConflictStrategyKind.KEEP_ALL


type ConflictStrategy = ContextAware | LatestWins | PreferMethod | KeepAll

_PREFER_PREFIX = "prefer-"


def parse_conflict_strategy(name: str | ConflictStrategy) -> ConflictStrategy:
    """Map wire names (``context-aware``, ``prefer-measured``...) to strategies."""

    if isinstance(name, ContextAware | LatestWins | PreferMethod | KeepAll):
        return name
    normalized = name.strip().lower()
    match normalized:
        case ConflictStrategyKind.CONTEXT_AWARE:
            return ContextAware()
        case ConflictStrategyKind.LATEST_WINS:
            return LatestWins()
        case ConflictStrategyKind.KEEP_ALL:
            return KeepAll()
    if normalized.startswith(_PREFER_PREFIX) and len(normalized) > len(_PREFER_PREFIX):
        method = normalized.removeprefix(_PREFER_PREFIX)
        if method != "method":
            return PreferMethod(method=method)
    raise UnknownStrategyError(name, kind="conflict")


def strategy_label(strategy: ConflictStrategy) -> str:
    """Wire name of a strategy, including the preferred method."""

    match strategy:
        case PreferMethod(method=method):
            return f"{_PREFER_PREFIX}{method}"
        case ContextAware() | LatestWins() | KeepAll():
            return strategy.kind.value
        case _:
            assert_never(strategy)


class ContextStrategy(StrEnum):
    PRESERVE = "preserve"
    MERGE = "merge"
    LATEST = "latest"


class DedupeAlgorithm(StrEnum):
    EXACT = "exact"
    FUZZY = "fuzzy"


class ValueStrategy(StrEnum):
    SUP = "sup"
    MERGE = "merge"
    A_WINS = "a-wins"
    B_WINS = "b-wins"


class JoinType(StrEnum):
    INNER = "inner"
    LEFT = "left"
    RIGHT = "right"
    FULL = "full"


@dataclass(frozen=True, slots=True, kw_only=True)
class MergeOptions:
    conflict_strategy: ConflictStrategy = field(default_factory=ContextAware)
    preserve_ids: bool = True
    equivalence: EquivalencePolicy = DEFAULT_POLICY

    @classmethod
    def from_config(cls, config: EngineConfig, **overrides: object) -> Self:
        options = cls(
            conflict_strategy=config.conflict_strategy,
            equivalence=config.equivalence,
        )
        return replace(options, **overrides)  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True, kw_only=True)
class BulkMergeOptions:
    conflict_strategy: ConflictStrategy = field(default_factory=ContextAware)
    source_preference: tuple[str, ...] = ()
    equivalence: EquivalencePolicy = DEFAULT_POLICY

    @classmethod
    def from_config(cls, config: EngineConfig, **overrides: object) -> Self:
        options = cls(
            conflict_strategy=config.conflict_strategy,
            source_preference=config.source_preference,
            equivalence=config.equivalence,
        )
        return replace(options, **overrides)  # type: ignore[arg-type]


@dataclass(slots=True)
class BulkMergeResult:
    merged: Record | None
    decisions: list[MergeDecision] = field(default_factory=list["MergeDecision"])


@dataclass(frozen=True, slots=True, kw_only=True)
class DedupeOptions:
    identity: tuple[str, ...] = ()
    context_strategy: ContextStrategy = ContextStrategy.PRESERVE
    algorithm: DedupeAlgorithm = DedupeAlgorithm.FUZZY
    threshold: float = DEFAULT_DEDUPE_THRESHOLD
    source_preference: tuple[str, ...] = ()
    equivalence: EquivalencePolicy = DEFAULT_POLICY

    @classmethod
    def from_config(cls, config: EngineConfig, **overrides: object) -> Self:
        options = cls(
            algorithm=config.dedupe_algorithm,
            threshold=config.dedupe_threshold,
            source_preference=config.source_preference,
            equivalence=config.equivalence,
        )
        return replace(options, **overrides)  # type: ignore[arg-type]


@dataclass(slots=True)
class DedupeResult:
    records: list[Record]
    decisions: list[DedupeDecision]
    stats: DedupeStats


type RecordPairPredicate = Callable[[Record, Record], bool]


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchContext:
    """Join criteria. Every enabled dimension must hold; none enabled matches all."""

    timeframe_overlapping: bool = False
    same_scale: bool = False
    same_source: bool = False
    same_method: bool = False
    same_subject: bool = False
    predicate: RecordPairPredicate | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class JoinOptions:
    match_context: MatchContext = field(default_factory=MatchContext)
    value_strategy: ValueStrategy = ValueStrategy.SUP
    join_type: JoinType = JoinType.INNER
    equivalence: EquivalencePolicy = DEFAULT_POLICY

    @classmethod
    def from_config(cls, config: EngineConfig, **overrides: object) -> Self:
        return replace(cls(equivalence=config.equivalence), **overrides)  # type: ignore[arg-type]
