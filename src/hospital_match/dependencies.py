"""FastAPI dependency injection utilities."""

from functools import lru_cache
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends

from hospital_match.config import Settings, get_settings

if TYPE_CHECKING:
    from hospital_match.repositories.hospital_repository import HospitalRepository
    from hospital_match.services.chat_service import ChatService
    from hospital_match.services.confirmation_service import ConfirmationService
    from hospital_match.services.embedding_service import EmbeddingService
    from hospital_match.services.qdrant_service import QdrantService
    from hospital_match.services.search_service import HospitalSearchService

# Common dependencies that can be injected into route handlers
SettingsDep = Annotated[Settings, Depends(get_settings)]


# Services are process-wide singletons built from the cached settings.
@lru_cache
def get_qdrant_service() -> "QdrantService":
    """Get or create a cached QdrantService instance."""
    from hospital_match.services.qdrant_service import QdrantService

    return QdrantService(get_settings())


@lru_cache
def get_embedding_service() -> "EmbeddingService":
    from hospital_match.services.embedding_service import EmbeddingService

    return EmbeddingService(get_settings())


@lru_cache
def get_hospital_repository() -> "HospitalRepository":
    from hospital_match.repositories.hospital_repository import HospitalRepository

    return HospitalRepository(get_qdrant_service())


@lru_cache
def get_confirmation_service() -> "ConfirmationService":
    """Get a ConfirmationService wired with the configured location vocabulary."""
    from hospital_match.matching import CityFilter, LocationConfig, NameDecomposer
    from hospital_match.services.confirmation_service import ConfirmationService

    settings = get_settings()
    locations = LocationConfig.from_settings(settings)
    return ConfirmationService(
        settings=settings,
        repository=get_hospital_repository(),
        embedding_service=get_embedding_service(),
        decomposer=NameDecomposer(locations),
        city_filter=CityFilter(locations),
    )


@lru_cache
def get_search_service() -> "HospitalSearchService":
    from hospital_match.services.search_service import HospitalSearchService

    return HospitalSearchService(
        settings=get_settings(),
        repository=get_hospital_repository(),
        embedding_service=get_embedding_service(),
    )


@lru_cache
def get_chat_service() -> "ChatService":
    """Get the ChatService with its intent classifier, sessions, speech output and handoff."""
    from hospital_match.matching import LocationConfig
    from hospital_match.services.chat_service import ChatService
    from hospital_match.services.handoff_service import HumanHandoffNotifier
    from hospital_match.services.intent_service import IntentClassifier
    from hospital_match.services.session_store import SessionStore
    from hospital_match.services.speech_service import SpeechService

    settings = get_settings()
    return ChatService(
        settings=settings,
        classifier=IntentClassifier(settings, LocationConfig.from_settings(settings)),
        confirmation_service=get_confirmation_service(),
        search_service=get_search_service(),
        sessions=SessionStore(
            ttl_seconds=settings.session_ttl_seconds,
            max_sessions=settings.session_max_sessions,
        ),
        speech_service=SpeechService(settings),
        notifier=HumanHandoffNotifier(settings),
    )


# Type aliases for dependency injection
QdrantServiceDep = Annotated["QdrantService", Depends(get_qdrant_service)]
ConfirmationServiceDep = Annotated["ConfirmationService", Depends(get_confirmation_service)]
SearchServiceDep = Annotated["HospitalSearchService", Depends(get_search_service)]
ChatServiceDep = Annotated["ChatService", Depends(get_chat_service)]
