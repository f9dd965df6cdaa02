"""Audit records describing why an automated merge/dedupe choice was made.

These are outputs only. They carry no identity of their own and are never
fed back into the engine.
"""

from __future__ import annotations

from dataclasses import dataclass

from .enums import DedupeAction, MergeAction


@dataclass(frozen=True, slots=True, kw_only=True)
class MergeDecision:
    action: MergeAction
    record_id: str
    source: str | None = None
    reason: str | None = None
    sup_created: int | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class DedupeDecision:
    action: DedupeAction
    cluster_size: int
    sources: tuple[str, ...] = ()
    reason: str | None = None
    selected: str | None = None
    discarded: tuple[str, ...] = ()
    sub_decisions: tuple[MergeDecision, ...] = ()
    sup_created: int | None = None


@dataclass(frozen=True, slots=True)
class DedupeStats:
    clusters_found: int = 0
    records_merged: int = 0
