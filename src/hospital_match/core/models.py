"""Domain models representing hospital points and match results."""

from dataclasses import dataclass
from enum import Enum
from typing import Literal

MatchSource = Literal["semantic", "fuzzy"]


def make_unique_key(name: str, city: str, address: str) -> str:
    """Build the dedup identity ``name|city|address`` (lowercased, trimmed)."""
    return f"{name.lower().strip()}|{city.lower().strip()}|{address.lower().strip()}"


@dataclass(frozen=True)
class HospitalRecord:
    """Represents a hospital payload stored in Qdrant."""

    name: str
    address: str = ""
    city: str = ""
    city_exact: str = ""
    unique_key: str = ""

    @classmethod
    def create(cls, name: str, address: str, city: str) -> "HospitalRecord":
        """Build a record with its derived keyword and dedup fields."""
        return cls(
            name=name,
            address=address,
            city=city,
            city_exact=city.lower().strip(),
            unique_key=make_unique_key(name, city, address),
        )

    @property
    def dedup_key(self) -> str:
        return self.unique_key or make_unique_key(self.name, self.city, self.address)


@dataclass(frozen=True)
class IndexHit:
    """A point returned by the index; ``score`` is None for filter-only results."""

    id: str
    record: HospitalRecord
    score: float | None = None


class ConfidenceBand(str, Enum):
    """How sure we are that a scored candidate is the hospital asked about."""

    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    SUGGESTED = "suggested"
    EXCLUDED = "excluded"


@dataclass(frozen=True)
class ScoredMatch:
    """Weighted similarity breakdown for one candidate.

    Each component is already multiplied by its weight, so ``total_score``
    is their plain sum.
    """

    record: HospitalRecord
    name_score: float
    location_score: float
    address_score: float
    overall_name_score: float
    total_score: float
    source: MatchSource
    band: ConfidenceBand
