"""Engine defaults, optionally overridden from the environment.

Recognised variables (all optional):

- ``CONTEXTOPS_CONFLICT_STRATEGY``: ``context-aware``, ``latest-wins``,
  ``keep-all`` or ``prefer-<method>``
- ``CONTEXTOPS_EQUIVALENCE``: ``permissive`` or ``strict``
- ``CONTEXTOPS_DEDUPE_ALGORITHM``: ``exact`` or ``fuzzy``
- ``CONTEXTOPS_DEDUPE_THRESHOLD``: float in ``[0, 1]``
- ``CONTEXTOPS_SOURCE_PREFERENCE``: comma-separated source systems
"""

from __future__ import annotations

from dataclasses import dataclass, field

from contextops.domain.context import DimensionMode, EquivalencePolicy
from contextops.domain.operations.contracts import (
    DEFAULT_DEDUPE_THRESHOLD,
    ConflictStrategy,
    ContextAware,
    DedupeAlgorithm,
    UnknownStrategyError,
    parse_conflict_strategy,
)

from .env import optional_env_var
from .errors import ConfigurationError

CONFLICT_STRATEGY_VAR = "CONTEXTOPS_CONFLICT_STRATEGY"
EQUIVALENCE_VAR = "CONTEXTOPS_EQUIVALENCE"
DEDUPE_ALGORITHM_VAR = "CONTEXTOPS_DEDUPE_ALGORITHM"
DEDUPE_THRESHOLD_VAR = "CONTEXTOPS_DEDUPE_THRESHOLD"
SOURCE_PREFERENCE_VAR = "CONTEXTOPS_SOURCE_PREFERENCE"


@dataclass(frozen=True, slots=True)
class EngineConfig:
    conflict_strategy: ConflictStrategy = field(default_factory=ContextAware)
    equivalence: EquivalencePolicy = field(default_factory=EquivalencePolicy.permissive)
    dedupe_algorithm: DedupeAlgorithm = DedupeAlgorithm.FUZZY
    dedupe_threshold: float = DEFAULT_DEDUPE_THRESHOLD
    source_preference: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not 0.0 <= self.dedupe_threshold <= 1.0:
            raise ConfigurationError(
                f"Dedupe threshold must be between 0 and 1, got {self.dedupe_threshold}"
            )


def get_engine_config() -> EngineConfig:
    """Build the engine configuration from defaults and environment overrides."""

    defaults = EngineConfig()
    return EngineConfig(
        conflict_strategy=_conflict_strategy(defaults.conflict_strategy),
        equivalence=_equivalence(defaults.equivalence),
        dedupe_algorithm=_dedupe_algorithm(defaults.dedupe_algorithm),
        dedupe_threshold=_dedupe_threshold(defaults.dedupe_threshold),
        source_preference=_source_preference(defaults.source_preference),
    )


def _conflict_strategy(default: ConflictStrategy) -> ConflictStrategy:
    raw = optional_env_var(CONFLICT_STRATEGY_VAR)
    if raw is None:
        return default
    try:
        return parse_conflict_strategy(raw)
    except UnknownStrategyError as exc:
        raise ConfigurationError(
            f"{CONFLICT_STRATEGY_VAR}: {exc}", variable=CONFLICT_STRATEGY_VAR
        ) from exc


def _equivalence(default: EquivalencePolicy) -> EquivalencePolicy:
    raw = optional_env_var(EQUIVALENCE_VAR)
    if raw is None:
        return default
    try:
        mode = DimensionMode(raw.lower())
    except ValueError as exc:
        raise ConfigurationError(
            f"{EQUIVALENCE_VAR} must be 'permissive' or 'strict', got {raw!r}",
            variable=EQUIVALENCE_VAR,
        ) from exc
    return EquivalencePolicy.uniform(mode)


def _dedupe_algorithm(default: DedupeAlgorithm) -> DedupeAlgorithm:
    raw = optional_env_var(DEDUPE_ALGORITHM_VAR)
    if raw is None:
        return default
    try:
        return DedupeAlgorithm(raw.lower())
    except ValueError as exc:
        raise ConfigurationError(
            f"{DEDUPE_ALGORITHM_VAR} must be 'exact' or 'fuzzy', got {raw!r}",
            variable=DEDUPE_ALGORITHM_VAR,
        ) from exc


def _dedupe_threshold(default: float) -> float:
    raw = optional_env_var(DEDUPE_THRESHOLD_VAR)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{DEDUPE_THRESHOLD_VAR} must be a number, got {raw!r}", variable=DEDUPE_THRESHOLD_VAR
        ) from exc


def _source_preference(default: tuple[str, ...]) -> tuple[str, ...]:
    raw = optional_env_var(SOURCE_PREFERENCE_VAR)
    if raw is None:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())
