"""Keep only candidates located in (or plausibly near) the requested city."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

from hospital_match.core.models import HospitalRecord
from hospital_match.matching.locations import LocationConfig

T = TypeVar("T")


class CityFilter:
    """City matcher tolerant of alias spellings and city names inside addresses."""

    def __init__(self, locations: LocationConfig | None = None):
        self.locations = locations or LocationConfig()

    def matches(self, record: HospitalRecord, city: str) -> bool:
        city_lower = city.lower().strip()
        result_city = record.city.lower().strip()
        result_address = record.address.lower()

        if result_city == city_lower:
            return True
        if city_lower in result_city or city_lower in result_address:
            return True
        # "New Delhi" query vs. "Delhi" candidate
        if len(result_city) >= 3 and result_city in city_lower:
            return True

        return any(
            variation in result_city or variation in result_address
            for variation in self.locations.city_variations(city_lower)
        )

    def apply(
        self,
        items: Sequence[T],
        city: str | None,
        record_of: Callable[[T], HospitalRecord],
    ) -> list[T]:
        """Filter ``items`` by city; no city means no filtering."""
        if not city or not city.strip():
            return list(items)
        return [item for item in items if self.matches(record_of(item), city)]
