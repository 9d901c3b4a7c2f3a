#!/usr/bin/env python3
"""Load hospitals from a CSV file (name, address, city) into Qdrant.

Rows whose unique key is already stored are skipped, so the script can be
re-run safely on an updated file.

Usage:
    uv run python -m hospital_match.scripts.ingest_csv hospitals.csv
"""

import argparse
import asyncio
import csv
import sys
import time
from pathlib import Path

from hospital_match.config import get_settings
from hospital_match.core.logging import get_logger, setup_logging
from hospital_match.repositories.hospital_repository import HospitalRepository
from hospital_match.services.embedding_service import EmbeddingService
from hospital_match.services.ingestion_service import HospitalIngestionService
from hospital_match.services.qdrant_service import QdrantService

logger = get_logger(__name__)


def read_csv(path: Path) -> list[list[str]]:
    """Read all non-empty rows, trimming each cell."""
    with path.open(newline="", encoding="utf-8-sig") as fh:
        rows = [[cell.strip() for cell in row] for row in csv.reader(fh)]
    return [row for row in rows if any(row)]


async def run(path: Path) -> int:
    settings = get_settings()
    qdrant_service = QdrantService(settings)
    service = HospitalIngestionService(
        settings=settings,
        qdrant_service=qdrant_service,
        repository=HospitalRepository(qdrant_service),
        embedding_service=EmbeddingService(settings),
    )

    started = time.monotonic()
    try:
        rows = read_csv(path)
        logger.info("Read %d rows from %s", len(rows), path)
        stats = await service.ingest_rows(rows)
    finally:
        await qdrant_service.aclose()

    elapsed = time.monotonic() - started
    logger.info("=== Ingestion summary ===")
    logger.info("  Data rows read:        %d", stats.rows_read)
    logger.info("  Valid hospitals:       %d", stats.parsed)
    logger.info("  Invalid rows skipped:  %d", stats.skipped_rows)
    logger.info("  Duplicates in file:    %d", stats.duplicates_in_batch)
    logger.info("  Already in the index:  %d", stats.already_stored)
    logger.info("  Inserted:              %d", stats.inserted)
    logger.info("  Failed:                %d", stats.failed)
    logger.info("  Elapsed:               %.2fs", elapsed)
    return 1 if stats.failed else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Load hospitals from a CSV file into Qdrant.")
    parser.add_argument("csv_path", type=Path, help="CSV file with name,address,city columns")
    args = parser.parse_args()

    setup_logging()
    if not args.csv_path.is_file():
        logger.error("CSV file not found: %s", args.csv_path)
        sys.exit(2)

    sys.exit(asyncio.run(run(args.csv_path)))


if __name__ == "__main__":
    main()
