"""Public interface for the record payload adapter."""

from __future__ import annotations

from .schema import RecordPayload
from .translator import (
    RecordPayloadInput,
    bulk_merge_result_to_payload,
    dedupe_decision_to_payload,
    dedupe_result_to_payload,
    merge_decision_to_payload,
    parse_record,
    parse_records,
    record_to_payload,
)

__all__ = [
    "RecordPayload",
    "RecordPayloadInput",
    "bulk_merge_result_to_payload",
    "dedupe_decision_to_payload",
    "dedupe_result_to_payload",
    "merge_decision_to_payload",
    "parse_record",
    "parse_records",
    "record_to_payload",
]
