"""Name decomposition, city filtering and similarity scoring for hospital mentions."""

from hospital_match.matching.city_filter import CityFilter
from hospital_match.matching.locations import LocationConfig
from hospital_match.matching.name_decomposer import NameDecomposer
from hospital_match.matching.similarity import (
    address_similarity,
    confidence_band,
    location_similarity,
    name_similarity,
    score_candidate,
)

__all__ = [
    "CityFilter",
    "LocationConfig",
    "NameDecomposer",
    "address_similarity",
    "confidence_band",
    "location_similarity",
    "name_similarity",
    "score_candidate",
]
