"""Hospital ingestion: parse rows, deduplicate, embed and upsert."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from qdrant_client import models as q

from hospital_match.adapters import qdrant_mapper
from hospital_match.config import Settings
from hospital_match.core.logging import get_logger
from hospital_match.core.models import HospitalRecord
from hospital_match.repositories.hospital_repository import HospitalRepository
from hospital_match.services.embedding_service import EmbeddingService
from hospital_match.services.qdrant_service import QdrantService
from hospital_match.text_processing.normalize_text import normalize_field

logger = get_logger(__name__)

T = TypeVar("T")

_HEADER_CELLS = frozenset(
    {"name", "hospital", "hospital name", "hospital_name", "address", "city"}
)


@dataclass(slots=True)
class IngestionStats:
    """High-level ingestion operation statistics."""

    rows_read: int = 0
    parsed: int = 0
    skipped_rows: int = 0
    duplicates_in_batch: int = 0
    already_stored: int = 0
    inserted: int = 0
    failed: int = 0


def looks_like_header(row: Sequence[str]) -> bool:
    return any((cell or "").strip().lower() in _HEADER_CELLS for cell in row)


def parse_hospital_row(row: Sequence[str]) -> HospitalRecord | None:
    """Parse a ``name, address, city`` row; None when it is unusable."""
    if len(row) < 3:
        logger.warning("Invalid row format: %s", row)
        return None

    name = normalize_field(row[0])
    if not name:
        logger.warning("Missing hospital name in row: %s", row)
        return None

    return HospitalRecord.create(
        name=name,
        address=normalize_field(row[1]),
        city=normalize_field(row[2]),
    )


def embedding_text(record: HospitalRecord) -> str:
    return f"{record.name} | {record.address} | {record.city}"


def chunked(items: Sequence[T], size: int) -> list[Sequence[T]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


async def with_retries(
    call: Callable[[], Awaitable[T]],
    *,
    label: str,
    retries: int,
    base_delay: float = 1.0,
    max_delay: float = 5.0,
) -> T:
    """Run ``call`` with exponential backoff, re-raising after ``retries`` attempts."""
    attempt = 0
    while True:
        try:
            return await call()
        except Exception as exc:
            attempt += 1
            if attempt >= retries:
                logger.error("%s failed after %d attempts: %s", label, attempt, exc)
                raise
            delay = min(base_delay * 2**attempt, max_delay)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                label,
                attempt,
                retries,
                delay,
                exc,
            )
            await asyncio.sleep(delay)


class HospitalIngestionService:
    """Loads hospital rows into the index without creating duplicates."""

    def __init__(
        self,
        settings: Settings,
        qdrant_service: QdrantService,
        repository: HospitalRepository,
        embedding_service: EmbeddingService,
        retry_base_delay: float = 1.0,
    ):
        self.qdrant_service = qdrant_service
        self.repository = repository
        self.embedding_service = embedding_service
        self.embedding_batch_size = settings.ingest_embedding_batch_size
        self.upsert_batch_size = settings.ingest_upsert_batch_size
        self.max_retries = settings.ingest_max_retries
        self.retry_base_delay = retry_base_delay
        self._sem = asyncio.Semaphore(settings.ingest_max_concurrent_embeddings)

    async def ingest_rows(self, rows: Sequence[Sequence[str]]) -> IngestionStats:
        """Ingest raw CSV rows (optionally starting with a header row)."""
        stats = IngestionStats(rows_read=len(rows))

        data_rows = list(rows)
        if data_rows and looks_like_header(data_rows[0]):
            data_rows = data_rows[1:]
            stats.rows_read -= 1
            logger.info("Skipped header row, processing %d data rows", len(data_rows))

        records: list[HospitalRecord] = []
        for row in data_rows:
            record = parse_hospital_row(row)
            if record is None:
                stats.skipped_rows += 1
                continue
            records.append(record)
        stats.parsed = len(records)

        return await self.ingest_records(records, stats)

    async def ingest_records(
        self,
        records: Sequence[HospitalRecord],
        stats: IngestionStats | None = None,
    ) -> IngestionStats:
        """Deduplicate by unique_key, skip stored keys, embed and upsert the rest."""
        stats = stats or IngestionStats(rows_read=len(records), parsed=len(records))

        await self.qdrant_service.ensure_schema()

        unique: dict[str, HospitalRecord] = {}
        for record in records:
            if record.unique_key in unique:
                stats.duplicates_in_batch += 1
                continue
            unique[record.unique_key] = record
        logger.info(
            "Unique hospitals after deduplication: %d (%d duplicates removed)",
            len(unique),
            stats.duplicates_in_batch,
        )

        existing = await self.repository.get_existing_keys()
        new_records = [r for key, r in unique.items() if key not in existing]
        stats.already_stored = len(unique) - len(new_records)
        logger.info(
            "Found %d existing records; %d new hospitals to insert",
            len(existing),
            len(new_records),
        )

        if not new_records:
            return stats

        batches = chunked(new_records, self.embedding_batch_size)
        results = await asyncio.gather(
            *(self._embed_batch(batch, idx, len(batches)) for idx, batch in enumerate(batches)),
            return_exceptions=True,
        )

        points: list[q.PointStruct] = []
        for batch, result in zip(batches, results):
            if isinstance(result, BaseException):
                stats.failed += len(batch)
                continue
            points.extend(result)

        for idx, point_batch in enumerate(chunked(points, self.upsert_batch_size)):
            try:
                await with_retries(
                    lambda pb=point_batch: self.qdrant_service.upsert_points(pb),
                    label=f"Upsert batch {idx + 1}",
                    retries=self.max_retries,
                    base_delay=self.retry_base_delay,
                )
                stats.inserted += len(point_batch)
            except Exception:
                stats.failed += len(point_batch)

        logger.info("Ingestion completed: %s", stats)
        return stats

    async def _embed_batch(
        self,
        batch: Sequence[HospitalRecord],
        idx: int,
        total: int,
    ) -> list[q.PointStruct]:
        async with self._sem:
            logger.info("Embedding batch %d/%d (%d hospitals)", idx + 1, total, len(batch))
            vectors = await with_retries(
                lambda: self.embedding_service.embed_batch([embedding_text(r) for r in batch]),
                label=f"Embedding batch {idx + 1}",
                retries=self.max_retries,
                base_delay=self.retry_base_delay,
            )
        return [
            qdrant_mapper.hospital_to_point(str(uuid.uuid4()), record, vector)
            for record, vector in zip(batch, vectors)
        ]
