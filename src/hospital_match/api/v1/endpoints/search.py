"""Search and confirmation endpoints."""

from fastapi import APIRouter, HTTPException, status

from hospital_match.core.exceptions import ValidationException
from hospital_match.core.logging import get_logger
from hospital_match.dependencies import ConfirmationServiceDep, SearchServiceDep
from hospital_match.schemas.search import (
    ConfirmRequest,
    ConfirmResponse,
    MatchItem,
    SearchRequest,
    SearchResponse,
)

logger = get_logger(__name__)

router = APIRouter(tags=["search"])


@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Hospital Search",
    description="Lists hospitals by free-text query and/or city",
    status_code=status.HTTP_200_OK,
)
async def search(
    request: SearchRequest,
    search_service: SearchServiceDep,
) -> SearchResponse:
    """Search the hospital network.

    - With a ``query``: semantic search (city folded into the query text).
    - With only a ``city``: exact city listing with a fuzzy fallback.
    - With neither: the generic "hospitals" search.

    Raises:
        HTTPException: If the index or embedding provider fails.
    """
    try:
        logger.info(
            "Search request: query=%r city=%r limit=%s",
            request.query,
            request.city,
            request.limit,
        )

        if request.query:
            results = await search_service.search_text(request.query, request.city, request.limit)
        elif request.city:
            results = await search_service.list_city(request.city, request.limit)
        else:
            results = await search_service.resolve_search(None, request.limit)

        return SearchResponse(results=results, total_results=len(results))

    except Exception as e:
        logger.error("Search failed: %s", e, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Search failed: {str(e)}",
        ) from e


@router.post(
    "/confirm",
    response_model=ConfirmResponse,
    summary="Confirm Hospital",
    description="Checks whether a hospital mention matches a hospital in the network",
    status_code=status.HTTP_200_OK,
)
async def confirm(
    request: ConfirmRequest,
    confirmation_service: ConfirmationServiceDep,
) -> ConfirmResponse:
    """Return up to three ranked matches; an empty list means not found."""
    if not request.hospital_name.strip():
        raise ValidationException("hospital_name must not be blank")

    matches = await confirmation_service.resolve_confirmation(request.hospital_name, request.city)
    return ConfirmResponse(
        hospital_name=request.hospital_name,
        city=request.city,
        matches=[MatchItem.from_match(m) for m in matches],
    )
