from __future__ import annotations

from typing import TYPE_CHECKING

from contextops.domain.model import MergeAction
from contextops.domain.operations import (
    BulkMergeOptions,
    LatestWins,
    bulk_merge,
    sort_by_source_preference,
)
from tests.support.records import at, make_observation, make_record, values_of

if TYPE_CHECKING:
    from contextops.domain.model import Clock, Observation, Record


def _sourced(record_id: str, system: str, revenue: object | None = None) -> Record:
    cells: dict[str, Observation] = {"name": make_observation("Acme", system)}
    if revenue is not None:
        cells["revenue"] = make_observation(revenue, system)
    return make_record(record_id, cells)


def test_empty_input_has_no_result(clock: Clock) -> None:
    result = bulk_merge([], clock=clock)

    assert result.merged is None
    assert result.decisions == []


def test_single_record_is_returned_as_is(clock: Clock) -> None:
    record = _sourced("only", "crm")

    result = bulk_merge([record], clock=clock)

    assert result.merged is record
    assert result.decisions == []


def test_sort_by_source_preference() -> None:
    hubspot = _sourced("hs", "HubSpot")
    salesforce = _sourced("sf", "salesforce")
    erp = _sourced("erp", "sap-erp")
    wiki = _sourced("wiki", "wiki")

    ordered = sort_by_source_preference([hubspot, wiki, salesforce, erp], ["ERP", "sales"])

    assert [record.record_id for record in ordered] == ["erp", "sf", "hs", "wiki"]


def test_sort_without_preference_keeps_order() -> None:
    records = [_sourced("b", "crm"), _sourced("a", "erp")]

    assert sort_by_source_preference(records, ()) == records


def test_preferred_source_becomes_base(clock: Clock) -> None:
    hubspot = _sourced("hs", "hubspot")
    salesforce = _sourced("sf", "salesforce", revenue=95)
    erp = _sourced("erp", "erp", revenue=100)

    result = bulk_merge(
        [hubspot, salesforce, erp],
        BulkMergeOptions(source_preference=("erp", "salesforce")),
        clock=clock,
    )

    merged = result.merged
    assert merged is not None
    assert merged.record_id == "erp"
    assert merged.merged_from == ("erp", "sf", "hs")
    assert values_of(merged, "revenue") == [100, 95]
    assert values_of(merged, "name") == ["Acme", "Acme", "Acme"]
    assert [(d.action, d.record_id, d.source) for d in result.decisions] == [
        (MergeAction.BASE_SELECTED, "erp", "erp"),
        (MergeAction.MERGED, "sf", "salesforce"),
        (MergeAction.MERGED, "hs", "hubspot"),
    ]
    assert result.decisions[0].reason == "highest_preference"
    assert [d.sup_created for d in result.decisions[1:]] == [2, 1]


def test_bulk_merge_uses_requested_strategy(clock: Clock) -> None:
    older = make_record("old", {"revenue": make_observation(100, "erp", timestamp=at(1))})
    newer = make_record("new", {"revenue": make_observation(90, "crm", timestamp=at(2))})

    result = bulk_merge(
        [older, newer], BulkMergeOptions(conflict_strategy=LatestWins()), clock=clock
    )

    assert result.merged is not None
    assert values_of(result.merged, "revenue") == [90]
    assert result.decisions[1].sup_created == 0
