"""Context equivalence: are two observations the *same fact*?

Two contexts are equivalent when every compared dimension agrees and their
timeframes overlap. What "agrees" means when one side leaves a dimension
unspecified is a policy decision:

- ``PERMISSIVE``: an absent value is a wildcard and never blocks equivalence.
- ``STRICT``: both sides must be absent, or both present and equal.

The permissive default can fold facts together that a stricter reading
would keep apart; ``EquivalencePolicy.strict()`` makes that testable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from contextops.domain.model import EMPTY_CONTEXT

from .timeframes import timeframes_overlap

if TYPE_CHECKING:
    from contextops.domain.model import ContextSchema, Timeframe


class DimensionMode(StrEnum):
    PERMISSIVE = "permissive"
    STRICT = "strict"


@dataclass(frozen=True, slots=True, kw_only=True)
class EquivalencePolicy:
    method: DimensionMode = DimensionMode.PERMISSIVE
    source: DimensionMode = DimensionMode.PERMISSIVE
    scale: DimensionMode = DimensionMode.PERMISSIVE
    subject: DimensionMode = DimensionMode.PERMISSIVE
    definition: DimensionMode = DimensionMode.PERMISSIVE
    timeframe: DimensionMode = DimensionMode.PERMISSIVE

    @classmethod
    def permissive(cls) -> EquivalencePolicy:
        return cls()

    @classmethod
    def strict(cls) -> EquivalencePolicy:
        return cls.uniform(DimensionMode.STRICT)

    @classmethod
    def uniform(cls, mode: DimensionMode) -> EquivalencePolicy:
        return cls(
            method=mode,
            source=mode,
            scale=mode,
            subject=mode,
            definition=mode,
            timeframe=mode,
        )


DEFAULT_POLICY = EquivalencePolicy()


def same_text(first: str | None, second: str | None) -> bool:
    """Case-insensitive equality; two missing values are equal."""

    if first is None or second is None:
        return first is None and second is None
    return first.strip().casefold() == second.strip().casefold()


def _dimension_agrees(first: str | None, second: str | None, mode: DimensionMode) -> bool:
    if first is None or second is None:
        if mode is DimensionMode.PERMISSIVE:
            return True
        return first is None and second is None
    return same_text(first, second)


def _timeframes_agree(
    first: Timeframe | None, second: Timeframe | None, mode: DimensionMode
) -> bool:
    first_missing = first is None or first.is_unspecified
    second_missing = second is None or second.is_unspecified
    if mode is DimensionMode.STRICT and first_missing != second_missing:
        return False
    return timeframes_overlap(first, second)


def contexts_equivalent(
    first: ContextSchema | None,
    second: ContextSchema | None,
    *,
    policy: EquivalencePolicy = DEFAULT_POLICY,
) -> bool:
    """Return whether two observation contexts describe the same fact."""

    first = first or EMPTY_CONTEXT
    second = second or EMPTY_CONTEXT
    return (
        _dimension_agrees(first.method, second.method, policy.method)
        and _dimension_agrees(first.source.system, second.source.system, policy.source)
        and _dimension_agrees(first.scale, second.scale, policy.scale)
        and _dimension_agrees(first.subject, second.subject, policy.subject)
        and _dimension_agrees(first.definition, second.definition, policy.definition)
        and _timeframes_agree(first.timeframe, second.timeframe, policy.timeframe)
    )


def contexts_same_source(first: ContextSchema | None, second: ContextSchema | None) -> bool:
    first = first or EMPTY_CONTEXT
    second = second or EMPTY_CONTEXT
    return same_text(first.source.system, second.source.system)


def context_similarity(first: ContextSchema | None, second: ContextSchema | None) -> float:
    """Fraction of method/definition/scale/source/timeframe that agree (0..1)."""

    if first is None or second is None:
        return 0.0
    checks = (
        same_text(first.method, second.method),
        same_text(first.definition, second.definition),
        same_text(first.scale, second.scale),
        contexts_same_source(first, second),
        timeframes_overlap(first.timeframe, second.timeframe),
    )
    return sum(checks) / len(checks)
