"""Pairwise and N-way record merging with pluggable conflict strategies.

Invariant for ``ContextAware`` on every shared field::

    max(len(a), len(b)) <= len(merged) <= len(a) + len(b)

and the superposition count grows by exactly the number of B observations
that found no equivalent partner in A.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, assert_never

from contextops.domain.context import (
    DEFAULT_POLICY,
    contexts_equivalent,
    get_primary_source,
    same_text,
)
from contextops.domain.model import (
    MergeAction,
    MergeDecision,
    generate_record_id,
    utcnow,
)
from contextops.domain.model._internal import timestamp_key

from .contracts import (
    BulkMergeOptions,
    BulkMergeResult,
    ContextAware,
    KeepAll,
    LatestWins,
    MergeOptions,
    PreferMethod,
    strategy_label,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from contextops.domain.context import EquivalencePolicy
    from contextops.domain.model import Cell, Clock, Observation, Record

    from .contracts import ConflictStrategy

log = logging.getLogger(__name__)


def smart_merge(
    record_a: Record,
    record_b: Record,
    options: MergeOptions | None = None,
    *,
    clock: Clock = utcnow,
) -> Record:
    """Merge ``record_b`` into ``record_a`` field by field.

    Fields present on one side only are carried over; shared fields go
    through ``resolve_cell_conflict``. Scalar attributes come from A.
    """

    options = options or MergeOptions()
    now = clock()

    cells: dict[str, Cell] = {}
    for field_id in (*record_a.cells, *(f for f in record_b.cells if f not in record_a.cells)):
        cell_a = record_a.cells.get(field_id)
        cell_b = record_b.cells.get(field_id)
        if cell_a is not None and cell_b is not None:
            cells[field_id] = resolve_cell_conflict(
                cell_a,
                cell_b,
                options.conflict_strategy,
                policy=options.equivalence,
                clock=clock,
            )
        elif cell_a is not None:
            cells[field_id] = cell_a
        elif cell_b is not None:
            cells[field_id] = cell_b

    record_id = record_a.record_id if options.preserve_ids else generate_record_id(clock=clock)
    return record_a.evolve(
        record_id=record_id,
        cells=cells,
        merged_from=_merged_lineage(record_a, record_b),
        merge_strategy=strategy_label(options.conflict_strategy),
        updated_at=now,
    )


def _merged_lineage(record_a: Record, record_b: Record) -> tuple[str, ...]:
    lineage = (
        *(record_a.merged_from or (record_a.record_id,)),
        *(record_b.merged_from or (record_b.record_id,)),
    )
    return tuple(dict.fromkeys(lineage))


def resolve_cell_conflict(
    cell_a: Cell,
    cell_b: Cell,
    strategy: ConflictStrategy,
    *,
    policy: EquivalencePolicy = DEFAULT_POLICY,
    clock: Clock = utcnow,
) -> Cell:
    match strategy:
        case ContextAware():
            return context_aware_resolve(cell_a, cell_b, policy=policy, clock=clock)
        case LatestWins():
            return latest_wins(cell_a, cell_b, clock=clock)
        case PreferMethod(method=method):
            return prefer_method(cell_a, cell_b, method, clock=clock)
        case KeepAll():
            return superpose(cell_a, cell_b, clock=clock)
        case _:
            assert_never(strategy)


def context_aware_resolve(
    cell_a: Cell,
    cell_b: Cell,
    *,
    policy: EquivalencePolicy = DEFAULT_POLICY,
    clock: Clock = utcnow,
) -> Cell:
    """Pair each A observation with the first unclaimed equivalent B observation.

    Paired observations resolve to the newer one (A wins ties). Unpaired A
    observations keep their slot; unpaired B observations are appended in
    their original order, creating superposition.
    """

    merged: list[Observation] = []
    claimed: set[int] = set()

    for observation_a in cell_a.values:
        partner_index = next(
            (
                index
                for index, observation_b in enumerate(cell_b.values)
                if index not in claimed
                and contexts_equivalent(observation_a.context, observation_b.context, policy=policy)
            ),
            None,
        )
        if partner_index is None:
            merged.append(observation_a)
            continue
        claimed.add(partner_index)
        observation_b = cell_b.values[partner_index]
        if timestamp_key(observation_a.timestamp) >= timestamp_key(observation_b.timestamp):
            merged.append(observation_a)
        else:
            merged.append(observation_b)

    merged.extend(
        observation_b
        for index, observation_b in enumerate(cell_b.values)
        if index not in claimed
    )
    return cell_a.with_values(merged, updated_at=clock())


def _latest(observations: Sequence[Observation]) -> Observation:
    # Later operands win timestamp ties.
    latest = observations[0]
    for observation in observations[1:]:
        if timestamp_key(observation.timestamp) >= timestamp_key(latest.timestamp):
            latest = observation
    return latest


def latest_wins(cell_a: Cell, cell_b: Cell, *, clock: Clock = utcnow) -> Cell:
    observations = (*cell_a.values, *cell_b.values)
    if not observations:
        return cell_a
    return cell_a.with_values((_latest(observations),), updated_at=clock())


def prefer_method(cell_a: Cell, cell_b: Cell, method: str, *, clock: Clock = utcnow) -> Cell:
    """Latest observation produced by ``method``; falls back to ``latest_wins``."""

    observations = (*cell_a.values, *cell_b.values)
    if not observations:
        return cell_a
    preferred = [
        observation
        for observation in observations
        if same_text(observation.context.method, method)
    ]
    if not preferred:
        return latest_wins(cell_a, cell_b, clock=clock)
    return cell_a.with_values((_latest(preferred),), updated_at=clock())


def superpose(cell_a: Cell, cell_b: Cell, *, clock: Clock = utcnow) -> Cell:
    """Concatenate both cells' observations unconditionally."""

    return cell_a.with_values((*cell_a.values, *cell_b.values), updated_at=clock())


def count_sup_values(record: Record) -> int:
    return record.sup_count


def sort_by_source_preference(
    records: Sequence[Record], preference: Sequence[str]
) -> list[Record]:
    """Stable sort by rank of the primary source; unranked sources go last."""

    if not preference:
        return list(records)
    lowered = [entry.casefold() for entry in preference]

    def rank(record: Record) -> int:
        source = (get_primary_source(record) or "").casefold()
        return next(
            (index for index, entry in enumerate(lowered) if entry in source),
            len(lowered),
        )

    return sorted(records, key=rank)


def bulk_merge(
    records: Sequence[Record],
    options: BulkMergeOptions | None = None,
    *,
    clock: Clock = utcnow,
) -> BulkMergeResult:
    """Fold ``records`` left to right with ``smart_merge``, most preferred first."""

    options = options or BulkMergeOptions()
    if not records:
        return BulkMergeResult(merged=None)
    if len(records) == 1:
        return BulkMergeResult(merged=records[0])

    ordered = sort_by_source_preference(records, options.source_preference)
    merged = ordered[0]
    decisions = [
        MergeDecision(
            action=MergeAction.BASE_SELECTED,
            record_id=merged.record_id,
            source=get_primary_source(merged),
            reason="highest_preference",
        )
    ]
    merge_options = MergeOptions(
        conflict_strategy=options.conflict_strategy,
        equivalence=options.equivalence,
    )

    for record in ordered[1:]:
        before = count_sup_values(merged)
        merged = smart_merge(merged, record, merge_options, clock=clock)
        decisions.append(
            MergeDecision(
                action=MergeAction.MERGED,
                record_id=record.record_id,
                source=get_primary_source(record),
                sup_created=count_sup_values(merged) - before,
            )
        )

    log.debug(
        "Bulk merged %d records into %s (strategy=%s)",
        len(records),
        merged.record_id,
        merged.merge_strategy,
    )
    return BulkMergeResult(merged=merged, decisions=decisions)
