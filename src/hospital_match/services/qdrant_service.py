"""Minimal Qdrant service for managing the hospitals collection."""

from __future__ import annotations

from collections.abc import Sequence

from qdrant_client import AsyncQdrantClient
from qdrant_client import models as q
from qdrant_client.conversions.common_types import PointId

from hospital_match.config import Settings
from hospital_match.core.constants import (
    K_ADDRESS,
    K_CITY,
    K_CITY_EXACT,
    K_NAME,
    K_UNIQUE_KEY,
)
from hospital_match.core.logging import get_logger

logger = get_logger(__name__)


class QdrantService:
    """Thin wrapper around the async Qdrant client for collection and point management."""

    def __init__(
        self,
        settings: Settings,
        aclient: AsyncQdrantClient | None = None,
    ):
        self.settings = settings
        self.col = settings.qdrant_collection_name
        self.vector_size = settings.embedding_dimension

        self.aclient = aclient or AsyncQdrantClient(
            url=settings.qdrant_url,
            api_key=settings.qdrant_api_key,
            prefer_grpc=settings.qdrant_prefer_grpc,
            timeout=settings.qdrant_timeout,
        )

        logger.info("QdrantService initialized for collection '%s'", self.col)

    async def aclose(self) -> None:
        """Close the client."""
        await self.aclient.close()

    async def ensure_schema(self) -> None:
        """Ensure the collection exists with a cosine vector space and payload indexes."""
        if await self.collection_exists():
            logger.info("Collection '%s' already exists", self.col)
        else:
            logger.info("Creating collection '%s' (size=%d)", self.col, self.vector_size)
            await self.aclient.create_collection(
                collection_name=self.col,
                vectors_config=q.VectorParams(
                    size=self.vector_size,
                    distance=q.Distance.COSINE,
                ),
                optimizers_config=q.OptimizersConfigDiff(default_segment_number=2),
                replication_factor=1,
            )
            logger.info("Created collection '%s'", self.col)

        await self._ensure_payload_indexes()

    async def _ensure_payload_indexes(self) -> None:
        """Create the text and keyword indexes used by the hospital filters."""

        async def _create(field_name: str, schema: q.PayloadSchemaType | q.TextIndexParams):
            try:
                await self.aclient.create_payload_index(
                    collection_name=self.col,
                    field_name=field_name,
                    field_schema=schema,
                )
            except Exception as exc:  # pragma: no cover
                # Only ignore already-exists errors; otherwise warn
                if "exists" in str(exc).lower():
                    logger.debug("Index '%s' already exists", field_name)
                else:
                    logger.warning("Failed to create index '%s': %s", field_name, exc)

        text_index = q.TextIndexParams(
            type=q.TextIndexType.TEXT,
            tokenizer=q.TokenizerType.WORD,
            lowercase=True,
        )

        logger.info("Ensuring payload indexes for '%s'", self.col)
        await _create(K_NAME, text_index)
        await _create(K_CITY, text_index)
        await _create(K_ADDRESS, text_index)
        await _create(K_CITY_EXACT, q.PayloadSchemaType.KEYWORD)
        await _create(K_UNIQUE_KEY, q.PayloadSchemaType.KEYWORD)

    async def collection_exists(self) -> bool:
        """Return True if the collection already exists."""
        return await self.aclient.collection_exists(self.col)

    async def get_collection_info(self) -> q.CollectionInfo:
        """Fetch collection information."""
        return await self.aclient.get_collection(self.col)

    async def count_points(self, filter_: q.Filter | None = None) -> int:
        """Count points, optionally restricted by a filter."""
        result = await self.aclient.count(
            collection_name=self.col,
            count_filter=filter_,
            exact=True,
        )
        return result.count

    async def delete_collection(self) -> None:
        """Drop the collection (tests and re-ingestion from scratch)."""
        await self.aclient.delete_collection(self.col)
        logger.info("Deleted collection '%s'", self.col)

    async def upsert_points(
        self,
        points: Sequence[q.PointStruct],
        *,
        wait: bool = True,
    ) -> None:
        """Upsert raw points into the collection."""
        if not points:
            return

        await self.aclient.upsert(
            collection_name=self.col,
            points=list(points),
            wait=wait,
        )
        logger.debug("Upserted %d points into '%s'", len(points), self.col)

    async def query(
        self,
        vector: Sequence[float],
        *,
        limit: int,
        filter_: q.Filter | None = None,
        score_threshold: float | None = None,
    ) -> list[q.ScoredPoint]:
        """Cosine nearest-neighbour search with an optional payload filter."""
        response = await self.aclient.query_points(
            collection_name=self.col,
            query=list(vector),
            query_filter=filter_,
            limit=limit,
            score_threshold=score_threshold,
            with_payload=True,
            with_vectors=False,
        )
        return response.points

    async def retrieve_by_filter(
        self,
        filter_: q.Filter,
        *,
        limit: int,
        with_payload: bool | Sequence[str] = True,
        with_vectors: bool = False,
        offset: PointId | None = None,
    ) -> list[q.Record]:
        """Filter-only retrieval: matching records without any vector ranking."""
        records, _ = await self.aclient.scroll(
            collection_name=self.col,
            scroll_filter=filter_,
            limit=limit,
            offset=offset,
            with_payload=with_payload,
            with_vectors=with_vectors,
        )
        return records

    async def scroll(
        self,
        *,
        limit: int,
        offset: PointId | None = None,
        filter_: q.Filter | None = None,
        with_payload: bool | Sequence[str] = True,
        with_vectors: bool = False,
    ) -> tuple[list[q.Record], PointId | None]:
        """Expose raw scroll for pagination use cases."""
        return await self.aclient.scroll(
            collection_name=self.col,
            scroll_filter=filter_,
            limit=limit,
            offset=offset,
            with_payload=with_payload,
            with_vectors=with_vectors,
        )


__all__ = ["QdrantService"]
