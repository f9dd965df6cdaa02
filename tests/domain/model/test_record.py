from __future__ import annotations

import re
from dataclasses import FrozenInstanceError
from datetime import UTC, datetime

import pytest

from contextops.domain.model import (
    Cell,
    ContextSchema,
    Observation,
    Record,
    SourceRef,
    Timeframe,
    generate_record_id,
)
from tests.support.records import T0, make_clock, make_observation, make_record


def test_cell_with_multiple_values_is_superposition() -> None:
    cell = Cell(values=(make_observation("a"), make_observation("b"), make_observation("c")))

    assert cell.is_superposition
    assert cell.sup_count == 2
    assert cell.primary is not None
    assert cell.primary.value == "a"


def test_empty_cell_has_no_primary_and_no_sup() -> None:
    cell = Cell()

    assert cell.primary is None
    assert not cell.is_superposition
    assert cell.sup_count == 0


def test_observation_is_immutable() -> None:
    observation = make_observation("Acme", "salesforce")

    with pytest.raises(FrozenInstanceError):
        observation.value = "Other"  # type: ignore[misc]


def test_naive_timestamps_are_read_as_utc() -> None:
    observation = Observation(value=1, timestamp=datetime(2025, 1, 1, 9))  # noqa: DTZ001
    timeframe = Timeframe(start=datetime(2025, 1, 1), end=datetime(2025, 1, 2))  # noqa: DTZ001

    assert observation.timestamp == datetime(2025, 1, 1, 9, tzinfo=UTC)
    assert timeframe.start is not None
    assert timeframe.start.tzinfo is UTC


def test_record_counts_sup_across_cells() -> None:
    record = make_record(
        "rec-1",
        {
            "name": [make_observation("Acme"), make_observation("ACME Inc")],
            "revenue": [make_observation(1), make_observation(2), make_observation(3)],
            "city": make_observation("Berlin"),
        },
    )

    assert record.sup_count == 3
    assert [observation.value for observation in record.observations()] == [
        "Acme",
        "ACME Inc",
        1,
        2,
        3,
        "Berlin",
    ]


def test_record_without_cells_is_valid() -> None:
    record = Record(record_id="ghost")

    assert record.cells == {}
    assert record.sup_count == 0
    assert record.cell("name") is None


def test_context_defaults_are_unspecified() -> None:
    context = ContextSchema()

    assert context.source == SourceRef()
    assert context.source_system is None
    assert context.timeframe is None


def test_generated_record_ids_use_clock_and_random_suffix() -> None:
    first = generate_record_id(clock=make_clock(T0))
    second = generate_record_id(clock=make_clock(T0))

    millis = int(T0.timestamp() * 1000)
    assert re.fullmatch(rf"rec_{millis}_[0-9a-z]{{9}}", first)
    assert first != second
