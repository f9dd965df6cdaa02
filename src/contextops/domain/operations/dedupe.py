"""Identity-signature clustering and per-cluster reconciliation.

Clustering is greedy and seed-based: each unassigned record seeds a cluster
and pulls in every later unassigned record similar enough *to the seed*.
It is deliberately not transitive, so two non-seed members of one cluster
may be less similar to each other than ``threshold``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, assert_never, cast

from contextops.domain.context import get_primary_source
from contextops.domain.model import DedupeAction, DedupeDecision, DedupeStats, utcnow
from contextops.domain.model._internal import timestamp_key

from .contracts import (
    BulkMergeOptions,
    ContextAware,
    ContextStrategy,
    DedupeAlgorithm,
    DedupeOptions,
    DedupeResult,
    LatestWins,
)
from .merge import bulk_merge, count_sup_values
from .normalize import normalize_records

if TYPE_CHECKING:
    from collections.abc import Sequence

    from contextops.domain.model import Clock, Record

    from .normalize import RecordCollection

log = logging.getLogger(__name__)

SIGNATURE_SEPARATOR = "|||"
UNKNOWN_SOURCE = "unknown"


def _signature_part(value: object) -> str | None:
    if value is None:
        return None
    return str(value).strip().lower() or None


def build_signature(record: Record, identity: Sequence[str]) -> str | None:
    """Join the normalised identity values of ``record``; ``None`` if all are empty.

    The primary observation of a cell is read first; a flat field value is
    the fallback when the record has no populated cell for that field.
    """

    parts: list[str] = []
    for field_id in identity:
        cell = record.cells.get(field_id)
        if cell is not None and cell.primary is not None:
            part = _signature_part(cell.primary.value)
        else:
            part = _signature_part(record.fields.get(field_id))
        if part:
            parts.append(part)
    return SIGNATURE_SEPARATOR.join(parts) if parts else None


def calculate_similarity(first: str, second: str, algorithm: DedupeAlgorithm) -> float:
    """Exact equality (1.0/0.0) or Jaccard similarity over whitespace tokens."""

    match algorithm:
        case DedupeAlgorithm.EXACT:
            return 1.0 if first == second else 0.0
        case DedupeAlgorithm.FUZZY:
            tokens_a = set(first.split())
            tokens_b = set(second.split())
            union = tokens_a | tokens_b
            if not union:
                return 0.0
            return len(tokens_a & tokens_b) / len(union)
        case _:
            assert_never(algorithm)


def _is_duplicate(
    seed: str, candidate: str, *, algorithm: DedupeAlgorithm, threshold: float
) -> bool:
    if algorithm is DedupeAlgorithm.EXACT:
        # Identical signatures always cluster, whatever the threshold.
        return seed == candidate
    return calculate_similarity(seed, candidate, algorithm) >= threshold


def find_duplicate_clusters(
    records: Sequence[Record],
    identity: Sequence[str],
    *,
    threshold: float,
    algorithm: DedupeAlgorithm,
) -> list[list[Record]]:
    """Group records into seed-based clusters, preserving input order.

    Records are tracked by position, so two records sharing a ``record_id``
    are still both accounted for.
    """

    signatures = [build_signature(record, identity) for record in records]
    assigned: set[int] = set()
    clusters: list[list[Record]] = []

    for seed_index, seed in enumerate(records):
        if seed_index in assigned:
            continue
        assigned.add(seed_index)
        cluster = [seed]
        clusters.append(cluster)

        seed_signature = signatures[seed_index]
        if seed_signature is None:
            continue

        for candidate_index in range(seed_index + 1, len(records)):
            if candidate_index in assigned:
                continue
            candidate_signature = signatures[candidate_index]
            if candidate_signature is None:
                continue
            if _is_duplicate(
                seed_signature,
                candidate_signature,
                algorithm=algorithm,
                threshold=threshold,
            ):
                assigned.add(candidate_index)
                cluster.append(records[candidate_index])

    return clusters


def _latest_index(cluster: Sequence[Record]) -> int:
    # Later members win ties on updated_at.
    latest = 0
    for index in range(1, len(cluster)):
        if timestamp_key(cluster[index].updated_at) >= timestamp_key(cluster[latest].updated_at):
            latest = index
    return latest


def _take_latest(
    cluster: Sequence[Record], *, sources: tuple[str, ...], reason: str
) -> tuple[Record, DedupeDecision]:
    latest_index = _latest_index(cluster)
    latest = cluster[latest_index]
    return latest, DedupeDecision(
        action=DedupeAction.TOOK_LATEST,
        cluster_size=len(cluster),
        sources=sources,
        reason=reason,
        selected=latest.record_id,
        discarded=tuple(
            record.record_id for index, record in enumerate(cluster) if index != latest_index
        ),
    )


def _cluster_sources(cluster: Sequence[Record]) -> tuple[str, ...]:
    return tuple(
        dict.fromkeys(get_primary_source(record) or UNKNOWN_SOURCE for record in cluster)
    )


def resolve_cluster(
    cluster: Sequence[Record],
    options: DedupeOptions,
    *,
    clock: Clock = utcnow,
) -> tuple[Record, DedupeDecision]:
    """Reduce a cluster of two or more duplicates to one record."""

    sources = _cluster_sources(cluster)

    match options.context_strategy:
        case ContextStrategy.PRESERVE:
            if len(sources) == 1:
                return _take_latest(cluster, sources=sources, reason="same_source")
            result = bulk_merge(
                cluster,
                BulkMergeOptions(
                    conflict_strategy=ContextAware(),
                    source_preference=options.source_preference,
                    equivalence=options.equivalence,
                ),
                clock=clock,
            )
            # Clusters are never empty, so bulk_merge always yields a record.
            merged = cast("Record", result.merged)
            return merged, DedupeDecision(
                action=DedupeAction.CONTEXT_MERGE,
                cluster_size=len(cluster),
                sources=sources,
                reason="multiple_sources",
                selected=merged.record_id,
                sub_decisions=tuple(result.decisions),
                sup_created=count_sup_values(merged),
            )
        case ContextStrategy.MERGE:
            result = bulk_merge(
                cluster,
                BulkMergeOptions(
                    conflict_strategy=LatestWins(),
                    source_preference=options.source_preference,
                    equivalence=options.equivalence,
                ),
                clock=clock,
            )
            merged = cast("Record", result.merged)
            return merged, DedupeDecision(
                action=DedupeAction.FORCE_MERGE,
                cluster_size=len(cluster),
                sources=sources,
                reason="forced_merge",
                selected=merged.record_id,
                sub_decisions=tuple(result.decisions),
            )
        case ContextStrategy.LATEST:
            return _take_latest(cluster, sources=sources, reason="most_recent")
        case _:
            assert_never(options.context_strategy)


def smart_dedupe(
    records: RecordCollection,
    options: DedupeOptions | None = None,
    *,
    clock: Clock = utcnow,
) -> DedupeResult:
    """Cluster duplicates by identity signature and reconcile each cluster.

    ``stats.records_merged`` always equals ``len(input) - len(result.records)``.
    """

    options = options or DedupeOptions()
    inputs = normalize_records(records)

    if not options.identity:
        log.warning("smart_dedupe called without identity fields; returning input unchanged")
        return DedupeResult(records=inputs, decisions=[], stats=DedupeStats())

    clusters = find_duplicate_clusters(
        inputs,
        options.identity,
        threshold=options.threshold,
        algorithm=options.algorithm,
    )

    survivors: list[Record] = []
    decisions: list[DedupeDecision] = []
    for cluster in clusters:
        if len(cluster) == 1:
            survivors.append(cluster[0])
            continue
        record, decision = resolve_cluster(cluster, options, clock=clock)
        survivors.append(record)
        decisions.append(decision)

    stats = DedupeStats(
        clusters_found=sum(1 for cluster in clusters if len(cluster) > 1),
        records_merged=len(inputs) - len(survivors),
    )
    log.info(
        "Deduplicated %d records into %d (clusters=%d, strategy=%s, algorithm=%s)",
        len(inputs),
        len(survivors),
        stats.clusters_found,
        options.context_strategy,
        options.algorithm,
    )
    return DedupeResult(records=survivors, decisions=decisions, stats=stats)
