"""Epistemic context attached to every observation.

All dimensions are optional. Absence means "unspecified"; how an unspecified
dimension compares against a specified one is decided by the equivalence
policy in ``contextops.domain.context.equivalence``, not here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ._internal import ensure_utc

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import Granularity


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceRef:
    system: str | None = None
    file: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class AgentRef:
    type: str | None = None
    id: str | None = None
    name: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Timeframe:
    """Inclusive interval. A missing bound is open-ended."""

    start: datetime | None = None
    end: datetime | None = None
    granularity: Granularity | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))

    @property
    def is_unspecified(self) -> bool:
        return self.start is None and self.end is None


@dataclass(frozen=True, slots=True, kw_only=True)
class ContextSchema:
    source: SourceRef = field(default_factory=SourceRef)
    agent: AgentRef = field(default_factory=AgentRef)
    method: str | None = None
    timeframe: Timeframe | None = None
    scale: str | None = None
    subject: str | None = None
    definition: str | None = None

    @property
    def source_system(self) -> str | None:
        return self.source.system


EMPTY_CONTEXT = ContextSchema()
