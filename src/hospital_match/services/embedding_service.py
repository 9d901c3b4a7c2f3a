"""Embedding provider used at both ingestion and query time."""

from collections.abc import Sequence

from llama_index.core.base.embeddings.base import BaseEmbedding
from llama_index.embeddings.openai import OpenAIEmbedding  # type: ignore

from hospital_match.config import Settings
from hospital_match.core.logging import get_logger

logger = get_logger(__name__)


class EmbeddingService:
    """Maps text to fixed-length dense vectors."""

    def __init__(self, settings: Settings, embed_model: BaseEmbedding | None = None):
        """Initialize embedding service.

        Args:
            settings: Application settings.
            embed_model: Optional preconfigured embedding model (primarily for tests).
        """
        self.dimension = settings.embedding_dimension
        self.embed_model = embed_model or OpenAIEmbedding(
            api_key=settings.openai_api_key,
            model=settings.openai_embedding_model,
            dimensions=settings.embedding_dimension,
            max_retries=settings.openai_max_retries,
        )

    async def embed(self, text: str) -> list[float]:
        """Embed a single query text."""
        vector = await self.embed_model.aget_query_embedding(text)
        self._check_dimension(vector)
        return vector

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed documents in one provider call."""
        if not texts:
            return []
        vectors = await self.embed_model.aget_text_embedding_batch(list(texts))
        for vector in vectors:
            self._check_dimension(vector)
        logger.debug("Embedded batch of %d texts", len(vectors))
        return vectors

    def _check_dimension(self, vector: Sequence[float]) -> None:
        if len(vector) != self.dimension:
            raise ValueError(
                f"Embedding dimension {len(vector)} does not match configured {self.dimension}"
            )
