"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Granularity(StrEnum):
    INSTANT = "instant"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class Method(StrEnum):
    """Well-known epistemic methods. Contexts accept any method string."""

    MEASURED = "measured"
    DECLARED = "declared"
    DERIVED = "derived"
    INFERRED = "inferred"
    AGGREGATED = "aggregated"


class Stability(StrEnum):
    EMERGING = "emerging"
    FORMING = "forming"
    STABLE = "stable"


class JoinStatus(StrEnum):
    MATCHED = "matched"
    LEFT_ONLY = "left_only"
    RIGHT_ONLY = "right_only"


class MergeAction(StrEnum):
    BASE_SELECTED = "base_selected"
    MERGED = "merged"


class DedupeAction(StrEnum):
    TOOK_LATEST = "took_latest"
    CONTEXT_MERGE = "context_merge"
    FORCE_MERGE = "force_merge"


class ConflictStrategyKind(StrEnum):
    """Discriminator for the closed set of cell conflict strategies."""

    CONTEXT_AWARE = "context-aware"
    LATEST_WINS = "latest-wins"
    PREFER_METHOD = "prefer-method"
    KEEP_ALL = "keep-all"
