"""Translate record payloads into domain records and results back into payloads.

Parsing is lenient in the way the engine is: blank strings become ``None``,
unreadable timestamps are dropped, and an unreadable timeframe stays
unspecified. Entries that fail schema validation are skipped with a warning.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from contextops.domain.context import parse_instant, parse_timeframe
from contextops.domain.model import (
    AgentRef,
    Cell,
    ContextSchema,
    JoinStatus,
    Observation,
    Record,
    SourceRef,
    Stability,
)

from .schema import (
    AgentPayload,
    CellPayload,
    ContextSchemaPayload,
    DedupeDecisionPayload,
    DedupeStatsPayload,
    MergeDecisionPayload,
    ObservationPayload,
    RecordPayload,
    SourcePayload,
    StabilityPayload,
    TimeframePayload,
)

if TYPE_CHECKING:
    from contextops.domain.model import DedupeDecision, MergeDecision, Timeframe
    from contextops.domain.operations import BulkMergeResult, DedupeResult

log = getLogger(__name__)

type RecordPayloadInput = RecordPayload | Mapping[str, object]


def _ensure_record_payload(payload: RecordPayloadInput) -> RecordPayload:
    if isinstance(payload, RecordPayload):
        return payload
    return RecordPayload.model_validate(payload)


def _timestamp(value: str | float | None) -> datetime | None:
    if isinstance(value, int | float):
        # Epoch milliseconds.
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            log.debug("Dropping out-of-range timestamp %r", value)
            return None
    return parse_instant(value)


def _enum_or_none[E: StrEnum](enum_type: type[E], value: str | None) -> E | None:
    if value is None:
        return None
    try:
        return enum_type(value)
    except ValueError:
        log.debug("Ignoring unknown %s value %r", enum_type.__name__, value)
        return None


def _context(payload: ContextSchemaPayload) -> ContextSchema:
    timeframe_spec: Any = payload.timeframe
    if isinstance(timeframe_spec, TimeframePayload):
        timeframe_spec = timeframe_spec.model_dump(exclude_none=True)
    return ContextSchema(
        source=SourceRef(**(payload.source or SourcePayload()).model_dump()),
        agent=AgentRef(**(payload.agent or AgentPayload()).model_dump()),
        method=payload.method,
        timeframe=parse_timeframe(timeframe_spec) if timeframe_spec else None,
        scale=payload.scale,
        subject=payload.subject,
        definition=payload.definition,
    )


def _observation(payload: ObservationPayload) -> Observation:
    return Observation(
        value=payload.value,
        context=_context(payload.context_schema),
        timestamp=_timestamp(payload.timestamp),
    )


def _cell(payload: CellPayload) -> Cell:
    return Cell(
        values=tuple(_observation(value) for value in payload.values),
        updated_at=parse_instant(payload.updated_at),
    )


def _stability(payload: StabilityPayload | str | None) -> Stability | None:
    if isinstance(payload, StabilityPayload):
        return _enum_or_none(Stability, payload.classification)
    return _enum_or_none(Stability, payload)


def parse_record(payload: RecordPayloadInput) -> Record:
    """Validate one payload and build a domain record from it."""

    model = _ensure_record_payload(payload)
    return Record(
        record_id=model.record_id,
        cells={field_id: _cell(cell) for field_id, cell in model.cells.items()},
        created_at=parse_instant(model.created_at),
        updated_at=parse_instant(model.updated_at),
        fields=dict(model.flat_fields),
        stability=_stability(model.stability),
        merged_from=tuple(model.merged_from),
        joined_from=tuple(model.joined_from),
        join_status=_enum_or_none(JoinStatus, model.join_status),
        merge_strategy=model.merge_strategy,
    )


def parse_records(data: object) -> list[Record]:
    """Parse a list of payloads, an id -> payload mapping, or ``{"records": ...}``."""

    items: Sequence[object]
    if isinstance(data, Mapping):
        if "records" in data:
            return parse_records(data["records"])
        items = list(data.values())
    elif isinstance(data, Sequence) and not isinstance(data, str | bytes):
        items = data
    else:
        log.warning("Ignoring unrecognised record payload collection of type %s", type(data))
        return []

    records: list[Record] = []
    for index, item in enumerate(items):
        if not isinstance(item, Mapping | RecordPayload):
            log.warning("Skipping record payload %d: not an object", index)
            continue
        try:
            records.append(parse_record(item))  # type: ignore[arg-type]
        except ValidationError as exc:
            log.warning("Skipping invalid record payload %d: %s", index, exc)
    return records


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _text(value: StrEnum | None) -> str | None:
    return value.value if value is not None else None


def _timeframe_payload(timeframe: Timeframe | None) -> TimeframePayload | None:
    if timeframe is None:
        return None
    return TimeframePayload(
        start=_isoformat(timeframe.start),
        end=_isoformat(timeframe.end),
        granularity=_text(timeframe.granularity),
    )


def _context_payload(context: ContextSchema) -> ContextSchemaPayload:
    return ContextSchemaPayload(
        source=SourcePayload(system=context.source.system, file=context.source.file),
        agent=AgentPayload(type=context.agent.type, id=context.agent.id, name=context.agent.name),
        method=context.method,
        timeframe=_timeframe_payload(context.timeframe),
        scale=context.scale,
        subject=context.subject,
        definition=context.definition,
    )


def _record_payload(record: Record) -> RecordPayload:
    return RecordPayload(
        record_id=record.record_id,
        cells={
            field_id: CellPayload(
                values=[
                    ObservationPayload(
                        value=observation.value,
                        context_schema=_context_payload(observation.context),
                        timestamp=_isoformat(observation.timestamp),
                    )
                    for observation in cell.values
                ],
                updated_at=_isoformat(cell.updated_at),
            )
            for field_id, cell in record.cells.items()
        },
        created_at=_isoformat(record.created_at),
        updated_at=_isoformat(record.updated_at),
        flat_fields=dict(record.fields),
        stability=(
            StabilityPayload(classification=_text(record.stability)) if record.stability else None
        ),
        merged_from=list(record.merged_from),
        joined_from=list(record.joined_from),
        join_status=_text(record.join_status),
        merge_strategy=record.merge_strategy,
    )


def record_to_payload(record: Record) -> dict[str, Any]:
    """Render a record as a JSON-serializable dict in the wire shape."""

    return _record_payload(record).model_dump(mode="json", by_alias=True, exclude_none=True)


def _merge_decision_payload(decision: MergeDecision) -> MergeDecisionPayload:
    return MergeDecisionPayload(
        action=decision.action.value,
        record_id=decision.record_id,
        source=decision.source,
        reason=decision.reason,
        sup_created=decision.sup_created,
    )


def merge_decision_to_payload(decision: MergeDecision) -> dict[str, Any]:
    return _merge_decision_payload(decision).model_dump(mode="json", by_alias=True)


def dedupe_decision_to_payload(decision: DedupeDecision) -> dict[str, Any]:
    payload = DedupeDecisionPayload(
        action=decision.action.value,
        cluster_size=decision.cluster_size,
        sources=list(decision.sources),
        reason=decision.reason,
        selected=decision.selected,
        discarded=list(decision.discarded),
        sub_decisions=[_merge_decision_payload(sub) for sub in decision.sub_decisions],
        sup_created=decision.sup_created,
    )
    return payload.model_dump(mode="json", by_alias=True)


def dedupe_result_to_payload(result: DedupeResult) -> dict[str, Any]:
    stats = DedupeStatsPayload(
        clusters_found=result.stats.clusters_found,
        records_merged=result.stats.records_merged,
    )
    return {
        "records": [record_to_payload(record) for record in result.records],
        "decisions": [dedupe_decision_to_payload(decision) for decision in result.decisions],
        "stats": stats.model_dump(mode="json", by_alias=True),
    }


def bulk_merge_result_to_payload(result: BulkMergeResult) -> dict[str, Any]:
    return {
        "merged": record_to_payload(result.merged) if result.merged is not None else None,
        "decisions": [merge_decision_to_payload(decision) for decision in result.decisions],
    }
