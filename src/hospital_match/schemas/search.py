"""Search and confirmation request and response schemas."""

from pydantic import BaseModel, Field

from hospital_match.core.constants import DEFAULT_SEARCH_LIMIT
from hospital_match.core.models import ScoredMatch


class SearchRequest(BaseModel):
    """Request model for search endpoint."""

    query: str | None = Field(None, description="Optional free-text query")
    city: str | None = Field(None, description="Optional city to restrict results to")
    limit: int = Field(
        DEFAULT_SEARCH_LIMIT, description="Maximum number of results to return", ge=1, le=50
    )


class HospitalHit(BaseModel):
    """A hospital returned by the search path with the index similarity score."""

    name: str = Field(..., description="Hospital name")
    address: str = Field(..., description="Street address")
    city: str = Field(..., description="City display name")
    score: float | None = Field(None, description="Index similarity score, if ranked")


class SearchResponse(BaseModel):
    """Response model for search endpoint."""

    results: list[HospitalHit] = Field(..., description="Matching hospitals")
    total_results: int = Field(..., description="Number of results returned")


class ConfirmRequest(BaseModel):
    """Request model for the confirmation endpoint."""

    hospital_name: str = Field(..., description="Hospital mention to confirm", min_length=1)
    city: str | None = Field(None, description="Optional city")


class MatchItem(BaseModel):
    """A scored confirmation candidate with its component breakdown."""

    name: str
    address: str
    city: str
    name_score: float
    location_score: float
    address_score: float
    overall_name_score: float
    total_score: float
    source: str
    band: str

    @classmethod
    def from_match(cls, match: ScoredMatch) -> "MatchItem":
        return cls(
            name=match.record.name,
            address=match.record.address,
            city=match.record.city,
            name_score=match.name_score,
            location_score=match.location_score,
            address_score=match.address_score,
            overall_name_score=match.overall_name_score,
            total_score=match.total_score,
            source=match.source,
            band=match.band.value,
        )


class ConfirmResponse(BaseModel):
    """Response model for the confirmation endpoint."""

    hospital_name: str = Field(..., description="Original hospital mention")
    city: str | None = Field(None, description="City used for filtering")
    matches: list[MatchItem] = Field(..., description="Up to three ranked matches")
