from __future__ import annotations

import logging

import pytest

from contextops.domain.model import RecordSet
from contextops.domain.operations import normalize_records
from tests.support.records import make_record


def test_sequence_and_mapping_shapes() -> None:
    first = make_record("a")
    second = make_record("b")

    assert normalize_records([first, second]) == [first, second]
    assert normalize_records((first,)) == [first]
    assert normalize_records({"a": first, "b": second}) == [first, second]
    assert normalize_records(first) == [first]


def test_record_set_shapes() -> None:
    first = make_record("a")

    assert normalize_records(RecordSet(name="crm", records=[first])) == [first]
    assert normalize_records(RecordSet(records={"a": first})) == [first]
    assert normalize_records(RecordSet()) == []


@pytest.mark.parametrize("collection", [None, 42, "records", object()])
def test_unrecognised_shapes_become_empty(collection: object) -> None:
    assert normalize_records(collection) == []


def test_non_record_members_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    record = make_record("a")

    with caplog.at_level(logging.WARNING):
        result = normalize_records([record, {"record_id": "b"}, None])

    assert result == [record]
    assert "Skipped 2 non-record entries" in caplog.text
