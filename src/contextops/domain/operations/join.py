"""Context-matched joins of two record sets.

Every (a, b) pair is tested, so one record may join several partners and
produce several output rows. The cost is O(len(a) * len(b)) by contract.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, assert_never

from contextops.domain.context import get_record_context, same_text, timeframes_overlap
from contextops.domain.model import JoinStatus, Record, generate_record_id, utcnow

from .contracts import JoinOptions, JoinType, MatchContext, ValueStrategy
from .merge import context_aware_resolve, superpose
from .normalize import normalize_records

if TYPE_CHECKING:
    from contextops.domain.context import EquivalencePolicy
    from contextops.domain.model import Cell, Clock

    from .normalize import RecordCollection

log = logging.getLogger(__name__)


def record_contexts_match(
    record_a: Record, record_b: Record, match_context: MatchContext
) -> bool:
    """Return whether every enabled ``match_context`` dimension holds for the pair."""

    context_a = get_record_context(record_a)
    context_b = get_record_context(record_b)

    if match_context.timeframe_overlapping and not timeframes_overlap(
        context_a.timeframe, context_b.timeframe
    ):
        return False
    if match_context.same_scale and not same_text(context_a.scale, context_b.scale):
        return False
    if match_context.same_source and not same_text(
        context_a.source_system, context_b.source_system
    ):
        return False
    if match_context.same_method and not same_text(context_a.method, context_b.method):
        return False
    if match_context.same_subject and not same_text(context_a.subject, context_b.subject):
        return False
    return match_context.predicate is None or match_context.predicate(record_a, record_b)


def _resolve_shared_cell(
    cell_a: Cell,
    cell_b: Cell,
    strategy: ValueStrategy,
    *,
    policy: EquivalencePolicy,
    clock: Clock,
) -> Cell:
    match strategy:
        case ValueStrategy.SUP:
            return superpose(cell_a, cell_b, clock=clock)
        case ValueStrategy.MERGE:
            return context_aware_resolve(cell_a, cell_b, policy=policy, clock=clock)
        case ValueStrategy.A_WINS:
            return cell_a
        case ValueStrategy.B_WINS:
            return cell_b
        case _:
            assert_never(strategy)


def join_records(
    record_a: Record,
    record_b: Record,
    options: JoinOptions | None = None,
    *,
    clock: Clock = utcnow,
) -> Record:
    """Union the cells of a matched pair into a fresh record."""

    options = options or JoinOptions()
    now = clock()

    cells: dict[str, Cell] = dict(record_a.cells)
    for field_id, cell_b in record_b.cells.items():
        cell_a = cells.get(field_id)
        if cell_a is None:
            cells[field_id] = cell_b
            continue
        cells[field_id] = _resolve_shared_cell(
            cell_a,
            cell_b,
            options.value_strategy,
            policy=options.equivalence,
            clock=clock,
        )

    return Record(
        record_id=generate_record_id(clock=clock),
        cells=cells,
        created_at=now,
        updated_at=now,
        joined_from=(record_a.record_id, record_b.record_id),
        join_status=JoinStatus.MATCHED,
    )


def context_join(
    set_a: RecordCollection,
    set_b: RecordCollection,
    options: JoinOptions | None = None,
    *,
    clock: Clock = utcnow,
) -> list[Record]:
    """Join two record sets on context criteria.

    Matched rows come first in (a, b) nested-loop order, then unmatched A
    rows (``left``/``full``), then unmatched B rows (``right``/``full``).
    """

    options = options or JoinOptions()
    records_a = normalize_records(set_a)
    records_b = normalize_records(set_b)

    results: list[Record] = []
    matched_a: set[int] = set()
    matched_b: set[int] = set()

    for index_a, record_a in enumerate(records_a):
        for index_b, record_b in enumerate(records_b):
            if not record_contexts_match(record_a, record_b, options.match_context):
                continue
            results.append(join_records(record_a, record_b, options, clock=clock))
            matched_a.add(index_a)
            matched_b.add(index_b)

    matched_rows = len(results)
    if options.join_type in (JoinType.LEFT, JoinType.FULL):
        results.extend(
            record.evolve(join_status=JoinStatus.LEFT_ONLY)
            for index, record in enumerate(records_a)
            if index not in matched_a
        )
    if options.join_type in (JoinType.RIGHT, JoinType.FULL):
        results.extend(
            record.evolve(join_status=JoinStatus.RIGHT_ONLY)
            for index, record in enumerate(records_b)
            if index not in matched_b
        )

    log.debug(
        "Context join (%s) produced %d matched and %d unmatched rows",
        options.join_type,
        matched_rows,
        len(results) - matched_rows,
    )
    return results
