"""Repository for querying Qdrant-stored hospital points."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from qdrant_client import models as q

from hospital_match.adapters import qdrant_mapper
from hospital_match.core.constants import (
    CITY_EXACT_LIMIT,
    FUZZY_LIMIT,
    HYBRID_SCORE_THRESHOLD,
    K_ADDRESS,
    K_CITY,
    K_CITY_EXACT,
    K_NAME,
    K_UNIQUE_KEY,
    VECTOR_SCORE_THRESHOLD,
)
from hospital_match.core.logging import get_logger
from hospital_match.core.models import IndexHit
from hospital_match.services.qdrant_service import QdrantService

logger = get_logger(__name__)

_SCROLL_PAGE_SIZE = 1000


def city_filter(city: str) -> q.Filter:
    """Disjunction: exact keyword city, free-text city, or free-text address."""
    return q.Filter(
        should=[
            q.FieldCondition(key=K_CITY_EXACT, match=q.MatchValue(value=city.lower().strip())),
            q.FieldCondition(key=K_CITY, match=q.MatchText(text=city)),
            q.FieldCondition(key=K_ADDRESS, match=q.MatchText(text=city)),
        ]
    )


def text_filter(text: str) -> q.Filter:
    """Disjunction of free-text matches on name, address and city."""
    return q.Filter(
        should=[
            q.FieldCondition(key=K_NAME, match=q.MatchText(text=text)),
            q.FieldCondition(key=K_ADDRESS, match=q.MatchText(text=text)),
            q.FieldCondition(key=K_CITY, match=q.MatchText(text=text)),
        ]
    )


def dedupe_hits(hits: Iterable[IndexHit]) -> list[IndexHit]:
    """Drop hits whose dedup key was already seen, keeping the first."""
    seen: set[str] = set()
    unique: list[IndexHit] = []
    for hit in hits:
        key = hit.record.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(hit)
    return unique


def _mentions_city(hit: IndexHit, city_lower: str) -> bool:
    return city_lower in hit.record.city.lower() or city_lower in hit.record.address.lower()


class HospitalRepository:
    """Encapsulates the index query helpers used by search and confirmation."""

    def __init__(self, qdrant_service: QdrantService):
        self._qdrant = qdrant_service

    async def vector_search(
        self,
        vector: Sequence[float],
        limit: int,
        filter_: q.Filter | None = None,
        score_threshold: float = VECTOR_SCORE_THRESHOLD,
    ) -> list[IndexHit]:
        """Plain nearest-neighbour search."""
        points = await self._qdrant.query(
            vector,
            limit=limit,
            filter_=filter_,
            score_threshold=score_threshold,
        )
        return [qdrant_mapper.scored_point_to_hit(point) for point in points]

    async def hybrid_search(
        self,
        vector: Sequence[float],
        top_k: int,
        city: str | None = None,
    ) -> list[IndexHit]:
        """Vector search combined with the optional city disjunction filter.

        Oversamples ``2 * top_k`` from the index, deduplicates, and when a
        city is given keeps exact city matches ahead of partial city/address
        matches (dropping the rest) before truncating to ``top_k``.
        """
        hits = await self.vector_search(
            vector,
            limit=top_k * 2,
            filter_=city_filter(city) if city else None,
            score_threshold=HYBRID_SCORE_THRESHOLD,
        )
        unique = dedupe_hits(hits)

        if city:
            city_lower = city.lower().strip()
            exact = [h for h in unique if h.record.city.lower() == city_lower]
            partial = [
                h
                for h in unique
                if h.record.city.lower() != city_lower and _mentions_city(h, city_lower)
            ]
            unique = exact + partial

        return unique[:top_k]

    async def fuzzy_match(self, text: str, limit: int = FUZZY_LIMIT) -> list[IndexHit]:
        """Filter-only partial text match on name, address or city."""
        records = await self._qdrant.retrieve_by_filter(text_filter(text), limit=limit)
        return [qdrant_mapper.record_to_hit(record) for record in records]

    async def exact_match_by_city(self, city: str, limit: int = CITY_EXACT_LIMIT) -> list[IndexHit]:
        """Filter-only exact keyword match on the normalized city."""
        records = await self._qdrant.retrieve_by_filter(
            q.Filter(
                must=[
                    q.FieldCondition(
                        key=K_CITY_EXACT,
                        match=q.MatchValue(value=city.lower().strip()),
                    )
                ]
            ),
            limit=limit,
        )
        return [qdrant_mapper.record_to_hit(record) for record in records]

    async def search_by_city(self, city: str, top_k: int = 10) -> list[IndexHit]:
        """List hospitals in a city: exact keyword match first, fuzzy fallback."""
        exact = dedupe_hits(await self.exact_match_by_city(city, max(top_k, CITY_EXACT_LIMIT)))
        if exact:
            return exact[:top_k]

        logger.info("No exact city match for '%s', falling back to fuzzy match", city)
        city_lower = city.lower().strip()
        fuzzy = dedupe_hits(await self.fuzzy_match(city, max(top_k, FUZZY_LIMIT)))
        return [hit for hit in fuzzy if _mentions_city(hit, city_lower)][:top_k]

    async def get_existing_keys(self) -> set[str]:
        """Collect every stored unique_key by paging through the collection."""
        if not await self._qdrant.collection_exists():
            logger.info("Collection doesn't exist yet, no existing keys")
            return set()

        keys: set[str] = set()
        offset = None
        while True:
            records, offset = await self._qdrant.scroll(
                limit=_SCROLL_PAGE_SIZE,
                offset=offset,
                with_payload=[K_UNIQUE_KEY],
            )
            for record in records:
                key = (record.payload or {}).get(K_UNIQUE_KEY)
                if isinstance(key, str) and key:
                    keys.add(key)
            if not records or offset is None:
                break
            logger.debug("Loaded %d existing keys...", len(keys))

        return keys
