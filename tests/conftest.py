import re
import zlib

import pytest
import pytest_asyncio
from llama_index.core.base.embeddings.base import BaseEmbedding
from qdrant_client import AsyncQdrantClient

from hospital_match.config import Settings
from hospital_match.core.models import HospitalRecord
from hospital_match.matching import CityFilter, LocationConfig, NameDecomposer
from hospital_match.repositories.hospital_repository import HospitalRepository
from hospital_match.services.confirmation_service import ConfirmationService
from hospital_match.services.embedding_service import EmbeddingService
from hospital_match.services.ingestion_service import HospitalIngestionService
from hospital_match.services.qdrant_service import QdrantService
from hospital_match.services.search_service import HospitalSearchService

EMBED_DIM = 768
_TOKEN = re.compile(r"[a-z0-9]+")


class HashingEmbedding(BaseEmbedding):
    """Deterministic bag-of-words embedding so tests never call external APIs."""

    dim: int = EMBED_DIM

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * self.dim
        tokens = _TOKEN.findall(text.lower())
        for token in tokens:
            vec[zlib.crc32(token.encode("utf-8")) % self.dim] += 1.0
        if not tokens:
            vec[0] = 1.0
        return vec

    def _get_text_embedding(self, text: str) -> list[float]:
        return self._vector(text)

    async def _aget_text_embedding(self, text: str) -> list[float]:
        return self._vector(text)

    def _get_query_embedding(self, query: str) -> list[float]:
        return self._vector(query)

    async def _aget_query_embedding(self, query: str) -> list[float]:
        return self._vector(query)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        qdrant_collection_name="test-hospitals",
        qdrant_url="http://unused-in-local-mode",
        qdrant_api_key=None,
        openai_api_key="test-key",
        embedding_dimension=EMBED_DIM,
        retrieval_timeout=5.0,
        elevenlabs_api_key=None,
        twilio_account_sid=None,
    )


@pytest_asyncio.fixture
async def aclient_local():
    """In-memory embedded Qdrant for tests."""
    client = AsyncQdrantClient(location=":memory:")
    try:
        yield client
    finally:
        await client.close()


@pytest_asyncio.fixture
async def qdrant_service(aclient_local: AsyncQdrantClient, test_settings: Settings):
    svc = QdrantService(settings=test_settings, aclient=aclient_local)
    await svc.ensure_schema()
    yield svc


@pytest.fixture
def embedding_service(test_settings: Settings) -> EmbeddingService:
    return EmbeddingService(test_settings, embed_model=HashingEmbedding())


@pytest.fixture
def repository(qdrant_service: QdrantService) -> HospitalRepository:
    return HospitalRepository(qdrant_service)


@pytest.fixture
def locations() -> LocationConfig:
    return LocationConfig()


@pytest.fixture
def ingestion_service(
    test_settings: Settings,
    qdrant_service: QdrantService,
    repository: HospitalRepository,
    embedding_service: EmbeddingService,
) -> HospitalIngestionService:
    return HospitalIngestionService(
        settings=test_settings,
        qdrant_service=qdrant_service,
        repository=repository,
        embedding_service=embedding_service,
        retry_base_delay=0.0,
    )


@pytest.fixture
def confirmation_service(
    test_settings: Settings,
    repository: HospitalRepository,
    embedding_service: EmbeddingService,
    locations: LocationConfig,
) -> ConfirmationService:
    return ConfirmationService(
        settings=test_settings,
        repository=repository,
        embedding_service=embedding_service,
        decomposer=NameDecomposer(locations),
        city_filter=CityFilter(locations),
    )


@pytest.fixture
def search_service(
    test_settings: Settings,
    repository: HospitalRepository,
    embedding_service: EmbeddingService,
) -> HospitalSearchService:
    return HospitalSearchService(
        settings=test_settings,
        repository=repository,
        embedding_service=embedding_service,
    )


@pytest.fixture
def seed(ingestion_service: HospitalIngestionService):
    """Ingest (name, address, city) tuples through the real ingestion path."""

    async def _seed(*hospitals: tuple[str, str, str]) -> None:
        records = [HospitalRecord.create(name, address, city) for name, address, city in hospitals]
        stats = await ingestion_service.ingest_records(records)
        assert stats.failed == 0

    return _seed
