"""Normalisation of the record collection shapes accepted by operations."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from contextops.domain.model import Record

if TYPE_CHECKING:
    from contextops.domain.model import RecordSet

log = logging.getLogger(__name__)

type RecordCollection = Iterable[Record] | Mapping[str, Record] | RecordSet


def normalize_records(collection: RecordCollection | object) -> list[Record]:
    """Return the records held by ``collection`` as a list.

    Accepts a sequence of records, a mapping of id to record, or an object
    exposing either under ``records``. Unrecognised shapes (and non-record
    members) are dropped with a warning instead of raising.
    """

    if collection is None:
        return []
    if isinstance(collection, Record):
        return [collection]
    if isinstance(collection, Mapping):
        return _only_records(collection.values())
    if isinstance(collection, str | bytes):
        log.warning("Ignoring unrecognised record collection of type %s", type(collection))
        return []
    if isinstance(collection, Iterable):
        return _only_records(collection)

    nested = getattr(collection, "records", None)
    if nested is not None and nested is not collection:
        return normalize_records(nested)

    log.warning("Ignoring unrecognised record collection of type %s", type(collection))
    return []


def _only_records(items: Iterable[object]) -> list[Record]:
    records: list[Record] = []
    skipped = 0
    for item in items:
        if isinstance(item, Record):
            records.append(item)
        else:
            skipped += 1
    if skipped:
        log.warning("Skipped %d non-record entries in record collection", skipped)
    return records
