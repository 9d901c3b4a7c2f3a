"""Hospital confirmation: multi-variant retrieval, city filtering and scoring."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from hospital_match.config import Settings
from hospital_match.core.constants import (
    CONFIRM_TOP_K,
    FUZZY_LIMIT,
    MAX_CONFIRMATIONS,
    SOURCE_FUZZY,
    SOURCE_SEMANTIC,
    SUGGESTION_THRESHOLD,
)
from hospital_match.core.logging import get_logger
from hospital_match.core.models import IndexHit, MatchSource, ScoredMatch
from hospital_match.matching import CityFilter, NameDecomposer, score_candidate
from hospital_match.repositories.hospital_repository import HospitalRepository
from hospital_match.services.embedding_service import EmbeddingService

logger = get_logger(__name__)


@dataclass(frozen=True)
class Candidate:
    """A retrieved hit tagged with the strategy that found it."""

    hit: IndexHit
    source: MatchSource


def build_query_variants(
    hospital_name: str,
    main_name: str,
    location_terms: list[str],
    city: str | None,
) -> list[str]:
    """Raw name, main name plus locality terms, and raw name plus city."""
    decomposed = " ".join([main_name, *location_terms]).strip() or hospital_name
    with_city = f"{hospital_name} {city}" if city else hospital_name
    return [hospital_name, decomposed, with_city]


def merge_candidates(batches: list[tuple[MatchSource, list[IndexHit]]]) -> list[Candidate]:
    """Merge hit batches in order, keeping the first occurrence of each dedup key."""
    seen: set[str] = set()
    merged: list[Candidate] = []
    for source, hits in batches:
        for hit in hits:
            key = hit.record.dedup_key
            if key in seen:
                continue
            seen.add(key)
            merged.append(Candidate(hit=hit, source=source))
    return merged


class ConfirmationService:
    """Decides whether a mentioned hospital exists in the network."""

    def __init__(
        self,
        settings: Settings,
        repository: HospitalRepository,
        embedding_service: EmbeddingService,
        decomposer: NameDecomposer,
        city_filter: CityFilter,
    ):
        self.settings = settings
        self.repository = repository
        self.embedding_service = embedding_service
        self.decomposer = decomposer
        self.city_filter = city_filter
        self.timeout = settings.retrieval_timeout

    async def confirm_hospital(self, hospital_name: str, city: str | None = None) -> list[ScoredMatch]:
        """Return up to three scored matches above the exclusion threshold.

        Never raises: retrieval failures degrade to fewer (or no) matches.
        """
        city = city.strip() if city and city.strip() else None
        try:
            return await self._confirm(hospital_name, city)
        except Exception as exc:
            logger.error("Error confirming hospital '%s': %s", hospital_name, exc, exc_info=True)
            return []

    async def _confirm(self, hospital_name: str, city: str | None) -> list[ScoredMatch]:
        main_name, location_terms = self.decomposer.decompose(hospital_name)
        logger.info(
            "Confirming '%s' -> main='%s' locations=%s city=%s",
            hospital_name,
            main_name,
            location_terms,
            city,
        )

        variants = build_query_variants(hospital_name, main_name, location_terms, city)

        results = await asyncio.gather(
            *(
                self._guarded(f"semantic:{variant}", lambda v=variant: self._semantic(v, city))
                for variant in variants
            ),
            self._guarded("fuzzy", lambda: self.repository.fuzzy_match(hospital_name, FUZZY_LIMIT)),
        )
        *semantic_results, fuzzy_result = results

        batches: list[tuple[MatchSource, list[IndexHit]]] = [
            (SOURCE_SEMANTIC, hits) for hits in semantic_results
        ]
        batches.append((SOURCE_FUZZY, fuzzy_result))
        candidates = merge_candidates(batches)

        filtered = self.city_filter.apply(candidates, city, lambda c: c.hit.record)

        scored = [
            score_candidate(hospital_name, main_name, location_terms, c.hit.record, c.source)
            for c in filtered
        ]
        scored.sort(key=lambda m: m.total_score, reverse=True)
        good = [m for m in scored if m.total_score >= SUGGESTION_THRESHOLD]

        logger.info(
            "Confirmation for '%s': retrieved=%d after_city=%d good=%d top=%s",
            hospital_name,
            len(candidates),
            len(filtered),
            len(good),
            [(m.record.name, round(m.total_score, 3)) for m in good[:MAX_CONFIRMATIONS]],
        )
        return good[:MAX_CONFIRMATIONS]

    async def _semantic(self, variant: str, city: str | None) -> list[IndexHit]:
        vector = await self.embedding_service.embed(variant)
        return await self.repository.hybrid_search(vector, CONFIRM_TOP_K, city)

    async def _guarded(
        self,
        label: str,
        call: Callable[[], Awaitable[list[IndexHit]]],
    ) -> list[IndexHit]:
        """Run one retrieval source with a timeout; failures yield no hits."""
        try:
            return await asyncio.wait_for(call(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Retrieval source %s timed out after %ss", label, self.timeout)
        except Exception as exc:
            logger.warning("Retrieval source %s failed: %s", label, exc)
        return []

    async def resolve_confirmation(self, hospital_name: str, city: str | None) -> list[ScoredMatch]:
        return await self.confirm_hospital(hospital_name, city)
