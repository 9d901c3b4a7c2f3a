"""Tests for the hospital search flow."""

import pytest

from hospital_match.core.models import HospitalRecord, IndexHit
from hospital_match.services.search_service import hits_to_hospitals

HOSPITALS = [
    ("Fortis Hospital", "Mulund West, Mumbai", "Mumbai"),
    ("Lilavati Hospital", "Bandra West, Mumbai", "Mumbai"),
    ("Kokilaben Hospital", "Andheri West, Mumbai", "Mumbai"),
    ("Jupiter Hospital", "Eastern Express Highway, Thane", "Mumbai"),
    ("Apollo Hospital", "Greams Road, Chennai", "Chennai"),
]


@pytest.fixture
async def seeded(seed):
    await seed(*HOSPITALS)


async def test_city_search_honors_limit_and_order(seeded, search_service):
    results = await search_service.resolve_search("Mumbai", limit=2)

    assert len(results) == 2
    assert all(r.city == "Mumbai" for r in results)
    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)


async def test_city_search_never_leaks_other_cities(seeded, search_service):
    results = await search_service.resolve_search("Chennai", limit=5)
    assert [r.name for r in results] == ["Apollo Hospital"]


async def test_unknown_city_returns_empty(seeded, search_service):
    assert await search_service.resolve_search("Jaipur", limit=3) == []


async def test_search_text_ranks_by_query(seeded, search_service):
    results = await search_service.search_text("Lilavati Bandra", limit=1)
    assert [r.name for r in results] == ["Lilavati Hospital"]


async def test_list_city_uses_exact_city(seeded, search_service):
    results = await search_service.list_city("mumbai", limit=10)
    assert len(results) == 4
    assert all(r.score is None for r in results)


async def test_list_city_falls_back_to_address(seeded, search_service):
    results = await search_service.list_city("Bandra", limit=10)
    assert [r.name for r in results] == ["Lilavati Hospital"]


def test_hits_to_hospitals_fills_missing_fields():
    hits = [
        IndexHit(id="1", record=HospitalRecord(name="Fortis Hospital"), score=0.5),
        IndexHit(id="2", record=HospitalRecord(name="", city="Mumbai")),
    ]
    results = hits_to_hospitals(hits)

    assert len(results) == 1
    assert results[0].name == "Fortis Hospital"
    assert results[0].address == "N/A"
    assert results[0].city == "N/A"
    assert results[0].score == 0.5


async def test_list_city_honors_large_limit(seed, search_service):
    await seed(*[(f"Clinic {n} Hospital", f"Street {n}, Pune", "Pune") for n in range(30)])

    results = await search_service.list_city("Pune", 30)

    assert len(results) == 30
    assert len({r.name for r in results}) == 30
