"""Pydantic models describing JSON-shaped record payloads.

The wire shape is the one produced by ingestion and consumed by the UI and
event-log layers: ``cells.<field>.values[]`` observations carrying a
``context_schema``, plus underscore-prefixed provenance tags.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class RecordsBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SourcePayload(RecordsBaseModel):
    system: str | None = None
    file: str | None = None

    _normalize_blank = field_validator("system", "file", mode="before")(_blank_to_none)


class AgentPayload(RecordsBaseModel):
    type: str | None = None
    id: str | None = None
    name: str | None = None

    _normalize_blank = field_validator("type", "id", "name", mode="before")(_blank_to_none)


class TimeframePayload(RecordsBaseModel):
    start: str | None = None
    end: str | None = None
    granularity: str | None = None


class ContextSchemaPayload(RecordsBaseModel):
    source: SourcePayload | None = None
    agent: AgentPayload | None = None
    method: str | None = None
    timeframe: TimeframePayload | str | None = None
    scale: str | None = None
    subject: str | None = None
    definition: str | None = None

    _normalize_blank = field_validator(
        "method", "scale", "subject", "definition", mode="before"
    )(_blank_to_none)


class ObservationPayload(RecordsBaseModel):
    value: Any = None
    context_schema: ContextSchemaPayload = Field(default_factory=ContextSchemaPayload)
    timestamp: str | float | None = None


class CellPayload(RecordsBaseModel):
    values: list[ObservationPayload] = Field(default_factory=list)
    updated_at: str | None = None


class StabilityPayload(RecordsBaseModel):
    classification: str | None = None


class RecordPayload(RecordsBaseModel):
    record_id: str = Field(validation_alias=AliasChoices("record_id", "id"))
    cells: dict[str, CellPayload] = Field(default_factory=dict)
    created_at: str | None = None
    updated_at: str | None = None
    flat_fields: dict[str, Any] = Field(default_factory=dict, alias="fields")
    stability: StabilityPayload | str | None = None
    merged_from: list[str] = Field(default_factory=list, alias="_mergedFrom")
    joined_from: list[str] = Field(default_factory=list, alias="_joinedFrom")
    join_status: str | None = Field(default=None, alias="_joinStatus")
    merge_strategy: str | None = Field(default=None, alias="_mergeStrategy")

    @field_validator("record_id", mode="before")
    @classmethod
    def _coerce_record_id(cls, value: object) -> object:
        if isinstance(value, int | float):
            return str(value)
        return value


class DecisionBaseModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MergeDecisionPayload(DecisionBaseModel):
    action: str
    record_id: str
    source: str | None = None
    reason: str | None = None
    sup_created: int | None = None


class DedupeDecisionPayload(DecisionBaseModel):
    action: str
    cluster_size: int
    sources: list[str] = Field(default_factory=list)
    reason: str | None = None
    selected: str | None = None
    discarded: list[str] = Field(default_factory=list)
    sub_decisions: list[MergeDecisionPayload] = Field(default_factory=list)
    sup_created: int | None = None


class DedupeStatsPayload(DecisionBaseModel):
    clusters_found: int
    records_merged: int
