"""Search path: list hospitals by city using the index's own relevance."""

from hospital_match.config import Settings
from hospital_match.core.constants import DEFAULT_SEARCH_LIMIT
from hospital_match.core.logging import get_logger
from hospital_match.core.models import IndexHit
from hospital_match.repositories.hospital_repository import HospitalRepository
from hospital_match.schemas.search import HospitalHit
from hospital_match.services.embedding_service import EmbeddingService

logger = get_logger(__name__)


def hits_to_hospitals(hits: list[IndexHit]) -> list[HospitalHit]:
    """Map index hits to response items, dropping hits without a name."""
    return [
        HospitalHit(
            name=hit.record.name,
            address=hit.record.address or "N/A",
            city=hit.record.city or "N/A",
            score=hit.score,
        )
        for hit in hits
        if hit.record.name
    ]


class HospitalSearchService:
    """Service for the non-confirmation search flow."""

    def __init__(
        self,
        settings: Settings,
        repository: HospitalRepository,
        embedding_service: EmbeddingService,
    ):
        self.settings = settings
        self.repository = repository
        self.embedding_service = embedding_service

    async def resolve_search(
        self,
        city: str | None = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[HospitalHit]:
        """Return up to ``limit`` hospitals, optionally restricted to a city."""
        city = city.strip() if city and city.strip() else None
        query = f"hospitals in {city}" if city else "hospitals"
        logger.info("Search: query='%s' city=%s limit=%s", query, city, limit)

        vector = await self.embedding_service.embed(query)
        if city:
            hits = await self.repository.hybrid_search(vector, limit, city)
        else:
            hits = await self.repository.vector_search(vector, limit)

        results = hits_to_hospitals(hits)
        logger.info("Search returned %d hospitals", len(results))
        return results

    async def search_text(
        self,
        query: str,
        city: str | None = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[HospitalHit]:
        """Free-text semantic search, with the city folded into the query text."""
        text = f"{query} in {city}" if city else query
        vector = await self.embedding_service.embed(text)
        return hits_to_hospitals(await self.repository.vector_search(vector, limit))

    async def list_city(self, city: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[HospitalHit]:
        """List hospitals by exact city keyword, falling back to fuzzy text match."""
        return hits_to_hospitals(await self.repository.search_by_city(city, limit))
