"""Helpers to translate between domain models and Qdrant transport objects."""

from __future__ import annotations

from typing import Any

from qdrant_client import models as q

from hospital_match.core.constants import (
    K_ADDRESS,
    K_CITY,
    K_CITY_EXACT,
    K_NAME,
    K_UNIQUE_KEY,
)
from hospital_match.core.models import HospitalRecord, IndexHit


def hospital_to_payload(record: HospitalRecord) -> dict[str, Any]:
    """Convert a hospital record into its stored payload."""
    return {
        K_NAME: record.name,
        K_ADDRESS: record.address,
        K_CITY: record.city,
        K_CITY_EXACT: record.city_exact,
        K_UNIQUE_KEY: record.unique_key,
    }


def hospital_to_point(point_id: str, record: HospitalRecord, vector: list[float]) -> q.PointStruct:
    """Convert a hospital record and its embedding into a Qdrant point."""
    return q.PointStruct(id=point_id, vector=vector, payload=hospital_to_payload(record))


def payload_to_hospital(payload: dict[str, Any] | None) -> HospitalRecord:
    """Convert a stored payload into a HospitalRecord.

    Missing or non-string fields become empty strings; older points may lack
    ``city_exact`` or ``unique_key``.
    """
    payload = payload or {}
    return HospitalRecord(
        name=_as_str(payload.get(K_NAME)),
        address=_as_str(payload.get(K_ADDRESS)),
        city=_as_str(payload.get(K_CITY)),
        city_exact=_as_str(payload.get(K_CITY_EXACT)),
        unique_key=_as_str(payload.get(K_UNIQUE_KEY)),
    )


def scored_point_to_hit(point: q.ScoredPoint) -> IndexHit:
    """Convert a vector search result into an IndexHit."""
    return IndexHit(
        id=_stringify_point_id(point.id),
        record=payload_to_hospital(point.payload),
        score=point.score,
    )


def record_to_hit(record: q.Record) -> IndexHit:
    """Convert a filter-only (scroll) record into an unscored IndexHit."""
    return IndexHit(
        id=_stringify_point_id(record.id),
        record=payload_to_hospital(record.payload),
        score=None,
    )


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return value.strip() if isinstance(value, str) else str(value)


def _stringify_point_id(value: Any) -> str:
    return str(value)
