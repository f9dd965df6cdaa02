"""Records, cells and observations.

A ``Cell`` holding more than one ``Observation`` *is* a superposition (SUP):
index 0 is the primary value, later entries are concurrently valid
alternatives. There is no separate SUP flag.

``Observation`` is a frozen value object. Operations that "copy" a cell may
therefore share observation instances between the input and output cells;
nothing can mutate them afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from ._internal import ensure_utc
from .context import EMPTY_CONTEXT, ContextSchema

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from .enums import JoinStatus, Stability


@dataclass(frozen=True, slots=True, kw_only=True)
class Observation:
    """One observed value plus the context it was observed in."""

    value: object
    context: ContextSchema = EMPTY_CONTEXT
    timestamp: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))


@dataclass(frozen=True, slots=True, kw_only=True)
class Cell:
    """Ordered observations for one field of one record."""

    values: tuple[Observation, ...] = ()
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))
        object.__setattr__(self, "updated_at", ensure_utc(self.updated_at))

    @property
    def primary(self) -> Observation | None:
        return self.values[0] if self.values else None

    @property
    def is_superposition(self) -> bool:
        return len(self.values) > 1

    @property
    def sup_count(self) -> int:
        return max(len(self.values) - 1, 0)

    def with_values(
        self, values: Iterable[Observation], *, updated_at: datetime | None = None
    ) -> Cell:
        return Cell(
            values=tuple(values),
            updated_at=updated_at if updated_at is not None else self.updated_at,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class Record:
    """A multi-valued record keyed by field identifier.

    ``fields`` carries flat legacy values for records that were ingested
    before cells existed; it is only consulted as a fallback.
    """

    record_id: str
    cells: Mapping[str, Cell] = field(default_factory=dict["str", "Cell"])
    created_at: datetime | None = None
    updated_at: datetime | None = None
    fields: Mapping[str, object] = field(default_factory=dict["str", "object"])
    stability: Stability | None = None
    merged_from: tuple[str, ...] = ()
    joined_from: tuple[str, ...] = ()
    join_status: JoinStatus | None = None
    merge_strategy: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))
        object.__setattr__(self, "updated_at", ensure_utc(self.updated_at))

    def cell(self, field_id: str) -> Cell | None:
        return self.cells.get(field_id)

    def observations(self) -> Iterable[Observation]:
        for cell in self.cells.values():
            yield from cell.values

    @property
    def sup_count(self) -> int:
        """Number of superposed alternatives across all cells."""

        return sum(cell.sup_count for cell in self.cells.values())

    def evolve(self, **changes: object) -> Record:
        return replace(self, **changes)  # type: ignore[arg-type]


@dataclass(slots=True, kw_only=True)
class RecordSet:
    """Named record collection, accepted wherever records are accepted."""

    name: str | None = None
    records: list[Record] | dict[str, Record] = field(default_factory=list["Record"])
