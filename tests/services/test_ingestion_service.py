"""Integration tests for hospital ingestion against embedded Qdrant."""

import uuid

import pytest

from hospital_match.core.models import HospitalRecord
from hospital_match.services.ingestion_service import (
    chunked,
    embedding_text,
    looks_like_header,
    parse_hospital_row,
    with_retries,
)

ROWS = [
    ["Hospital Name", "Address", "City"],
    ["Manipal Hospital", "Sarjapur Road, Bengaluru", "Bengaluru"],
    ["Apollo Hospital", "Greams Road, Chennai", "Chennai"],
    ["  Manipal   Hospital ", "Sarjapur Road,  Bengaluru", "BENGALURU"],
    ["", "No name street", "Mumbai"],
    ["Broken row"],
]


async def test_ingest_rows_counts_and_dedup(ingestion_service, qdrant_service):
    stats = await ingestion_service.ingest_rows(ROWS)

    assert stats.rows_read == 5
    assert stats.skipped_rows == 2
    assert stats.parsed == 3
    assert stats.duplicates_in_batch == 1
    assert stats.already_stored == 0
    assert stats.inserted == 2
    assert stats.failed == 0
    assert await qdrant_service.count_points() == 2


async def test_rerun_skips_stored_hospitals(ingestion_service, qdrant_service):
    await ingestion_service.ingest_rows(ROWS)
    more = ROWS + [["Fortis Hospital", "Mulund West", "Mumbai"]]
    stats = await ingestion_service.ingest_rows(more)

    assert stats.already_stored == 2
    assert stats.inserted == 1
    assert await qdrant_service.count_points() == 3


async def test_points_have_uuid_ids_and_full_payload(ingestion_service, qdrant_service):
    await ingestion_service.ingest_records(
        [HospitalRecord.create("Fortis Hospital", "Mulund West, Mumbai", "Mumbai")]
    )
    records, _ = await qdrant_service.scroll(limit=10)

    assert len(records) == 1
    uuid.UUID(str(records[0].id))
    assert records[0].payload == {
        "name": "Fortis Hospital",
        "address": "Mulund West, Mumbai",
        "city": "Mumbai",
        "city_exact": "mumbai",
        "unique_key": "fortis hospital|mumbai|mulund west, mumbai",
    }


async def test_embedding_failure_is_counted(ingestion_service, qdrant_service, monkeypatch):
    async def broken(texts):
        raise RuntimeError("provider down")

    monkeypatch.setattr(ingestion_service.embedding_service, "embed_batch", broken)
    stats = await ingestion_service.ingest_records(
        [HospitalRecord.create("Fortis Hospital", "Mulund West", "Mumbai")]
    )

    assert stats.failed == 1
    assert stats.inserted == 0
    assert await qdrant_service.count_points() == 0


async def test_with_retries_recovers_from_transient_errors():
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("reset")
        return "ok"

    assert await with_retries(flaky, label="flaky", retries=3, base_delay=0.0) == "ok"
    assert len(calls) == 3


async def test_with_retries_gives_up():
    async def always_fails():
        raise ConnectionError("reset")

    with pytest.raises(ConnectionError):
        await with_retries(always_fails, label="doomed", retries=2, base_delay=0.0)


def test_header_detection_uses_whole_cells():
    assert looks_like_header(["Hospital Name", "Address", "City"])
    assert looks_like_header(["name", "address", "city"])
    assert not looks_like_header(["Manipal Hospital", "Sarjapur Road", "Bengaluru"])


def test_parse_hospital_row_normalizes_fields():
    row = ["  Manipal&amp;Co\u200b Hospital ", "Sarjapur\tRoad", " Bengaluru "]
    record = parse_hospital_row(row)
    assert record is not None
    assert record.name == "Manipal&Co Hospital"
    assert record.address == "Sarjapur Road"
    assert record.city == "Bengaluru"
    assert record.city_exact == "bengaluru"


def test_parse_hospital_row_rejects_incomplete_rows():
    assert parse_hospital_row(["Only", "two"]) is None
    assert parse_hospital_row(["  ", "Road", "City"]) is None


def test_embedding_text_and_chunking():
    record = HospitalRecord.create("Fortis Hospital", "Mulund West", "Mumbai")
    assert embedding_text(record) == "Fortis Hospital | Mulund West | Mumbai"
    assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
