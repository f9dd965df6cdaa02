"""Translator tests for JSON record payloads."""

from __future__ import annotations

import json
import logging

import pytest

from contextops.adapters.records import (
    RecordPayload,
    bulk_merge_result_to_payload,
    dedupe_result_to_payload,
    merge_decision_to_payload,
    parse_record,
    parse_records,
    record_to_payload,
)
from contextops.domain.context import parse_timeframe
from contextops.domain.model import (
    Granularity,
    JoinStatus,
    MergeAction,
    MergeDecision,
    Stability,
)
from contextops.domain.operations import (
    BulkMergeResult,
    DedupeAlgorithm,
    DedupeOptions,
    MergeOptions,
    PreferMethod,
    smart_dedupe,
    smart_merge,
)
from tests.support.records import T0, at, make_clock, make_observation, make_record

EPOCH_MS_T0 = 1_761_998_400_000


@pytest.fixture
def sample_payload() -> dict[str, object]:
    return {
        "id": 42,
        "cells": {
            "revenue": {
                "values": [
                    {
                        "value": 100,
                        "context_schema": {
                            "source": {"system": "erp", "file": ""},
                            "agent": {"type": "system", "id": "etl-1"},
                            "method": "measured",
                            "timeframe": "Q4_2025",
                            "scale": " ",
                        },
                        "timestamp": "2025-11-01T12:00:00Z",
                    },
                    {
                        "value": "95",
                        "context_schema": {
                            "source": {"system": "salesforce"},
                            "method": "declared",
                            "timeframe": {"start": "2025-11-01", "end": "2025-11-30"},
                        },
                        "timestamp": EPOCH_MS_T0,
                    },
                ],
                "updated_at": "2025-11-01T12:00:00+00:00",
            }
        },
        "fields": {"legacy_name": "Acme"},
        "stability": {"classification": "stable", "score": 0.9},
        "_mergedFrom": ["a", "b"],
        "_joinStatus": "matched",
        "_mergeStrategy": "latest-wins",
        "ui_hint": "ignored",
    }


def test_parse_record_builds_domain_record(sample_payload: dict[str, object]) -> None:
    record = parse_record(sample_payload)

    assert record.record_id == "42"
    assert record.fields == {"legacy_name": "Acme"}
    assert record.stability is Stability.STABLE
    assert record.merged_from == ("a", "b")
    assert record.join_status is JoinStatus.MATCHED
    assert record.merge_strategy == "latest-wins"

    cell = record.cells["revenue"]
    assert cell.updated_at == T0
    measured, declared = cell.values
    assert measured.value == 100
    assert measured.timestamp == T0
    assert measured.context.source.system == "erp"
    assert measured.context.source.file is None
    assert measured.context.agent.id == "etl-1"
    assert measured.context.scale is None
    assert measured.context.timeframe == parse_timeframe("Q4_2025")
    assert declared.value == "95"
    assert declared.timestamp == T0
    assert declared.context.timeframe is not None
    assert declared.context.timeframe.granularity is Granularity.DAY


def test_parse_record_accepts_validated_model(sample_payload: dict[str, object]) -> None:
    model = RecordPayload.model_validate(sample_payload)

    assert parse_record(model).record_id == "42"


def test_unknown_enum_values_and_bad_timestamps_are_dropped() -> None:
    record = parse_record(
        {
            "record_id": "r1",
            "stability": "wobbly",
            "_joinStatus": "sideways",
            "updated_at": "not a date",
            "cells": {
                "name": {
                    "values": [
                        {"value": "Acme", "context_schema": {"timeframe": "someday"}},
                        {"value": "Acme Corp", "timestamp": 1e20},
                    ]
                }
            },
        }
    )

    assert record.stability is None
    assert record.join_status is None
    assert record.updated_at is None
    assert record.cells["name"].values[0].context.timeframe is None
    assert record.cells["name"].values[0].timestamp is None
    assert record.cells["name"].values[1].timestamp is None


def test_parse_records_accepts_collection_shapes() -> None:
    payloads = [{"record_id": "a"}, {"record_id": "b"}]

    assert [record.record_id for record in parse_records(payloads)] == ["a", "b"]
    assert [record.record_id for record in parse_records({"x": {"id": "x"}})] == ["x"]
    assert [record.record_id for record in parse_records({"records": payloads})] == ["a", "b"]
    assert parse_records("records") == []
    assert parse_records(None) == []


def test_parse_records_skips_invalid_entries(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        records = parse_records([{"record_id": "a"}, {"cells": {}}, "junk"])

    assert [record.record_id for record in records] == ["a"]
    assert "Skipping invalid record payload 1" in caplog.text
    assert "Skipping record payload 2" in caplog.text


def test_record_to_payload_uses_wire_shape() -> None:
    record = make_record(
        "r1",
        {
            "revenue": make_observation(
                100, "erp", method="measured", timeframe=parse_timeframe("2025-11")
            )
        },
        stability=Stability.FORMING,
    ).evolve(merged_from=("a", "b"), join_status=JoinStatus.LEFT_ONLY)

    payload = record_to_payload(record)

    assert payload["record_id"] == "r1"
    assert payload["_mergedFrom"] == ["a", "b"]
    assert payload["_joinStatus"] == "left_only"
    assert payload["stability"] == {"classification": "forming"}
    assert payload["fields"] == {}
    (observation,) = payload["cells"]["revenue"]["values"]
    assert observation == {
        "value": 100,
        "context_schema": {
            "source": {"system": "erp"},
            "agent": {},
            "method": "measured",
            "timeframe": {
                "start": "2025-11-01T00:00:00+00:00",
                "end": "2025-11-30T23:59:59.999999+00:00",
                "granularity": "month",
            },
        },
        "timestamp": "2025-11-01T12:00:00+00:00",
    }
    json.dumps(payload)


def test_record_payload_parses_back_to_the_same_record() -> None:
    record = make_record(
        "r1",
        {
            "revenue": [
                make_observation(
                    100, "erp", method="measured", timeframe=parse_timeframe("Q4_2025")
                ),
                make_observation(95, "crm", timestamp=at(1)),
            ]
        },
        created_at=at(-1),
        fields={"name": "Acme"},
    )

    assert parse_record(record_to_payload(record)) == record


def test_prefer_method_merge_keeps_the_preferred_method_on_the_wire() -> None:
    a = make_record("a", {"revenue": make_observation(100, "erp", method="measured")})
    b = make_record("b", {"revenue": make_observation(95, "crm", method="declared")})

    merged = smart_merge(
        a, b, MergeOptions(conflict_strategy=PreferMethod("measured")), clock=make_clock()
    )
    payload = record_to_payload(merged)

    assert payload["_mergeStrategy"] == "prefer-measured"
    assert parse_record(payload).merge_strategy == "prefer-measured"


def test_merge_decision_payload_uses_camel_case() -> None:
    decision = MergeDecision(
        action=MergeAction.MERGED, record_id="b", source="crm", sup_created=1
    )

    assert merge_decision_to_payload(decision) == {
        "action": "merged",
        "recordId": "b",
        "source": "crm",
        "reason": None,
        "supCreated": 1,
    }


def test_dedupe_result_payload() -> None:
    records = [
        make_record("a", {"name": make_observation("Acme", "salesforce", timestamp=at(1))}),
        make_record("b", {"name": make_observation("Acme", "hubspot", timestamp=at(2))}),
    ]
    result = smart_dedupe(
        records,
        DedupeOptions(identity=("name",), algorithm=DedupeAlgorithm.EXACT),
        clock=make_clock(),
    )

    payload = dedupe_result_to_payload(result)

    assert payload["stats"] == {"clustersFound": 1, "recordsMerged": 1}
    (decision,) = payload["decisions"]
    assert decision["action"] == "context_merge"
    assert decision["clusterSize"] == 2
    assert decision["sources"] == ["salesforce", "hubspot"]
    assert decision["supCreated"] == 1
    assert [sub["action"] for sub in decision["subDecisions"]] == ["base_selected", "merged"]
    assert payload["records"][0]["_mergedFrom"] == ["a", "b"]
    json.dumps(payload)


def test_bulk_merge_result_payload_without_result() -> None:
    assert bulk_merge_result_to_payload(BulkMergeResult(merged=None)) == {
        "merged": None,
        "decisions": [],
    }
