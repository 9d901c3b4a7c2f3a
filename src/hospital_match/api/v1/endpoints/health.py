"""Health check endpoint."""

from fastapi import APIRouter

from hospital_match.core.logging import get_logger
from hospital_match.dependencies import QdrantServiceDep, SettingsDep
from hospital_match.schemas.health import HealthResponse

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Returns the health status of the API and the size of the hospital index",
)
async def health_check(settings: SettingsDep, qdrant_service: QdrantServiceDep) -> HealthResponse:
    """Check API health and return status.

    Args:
        settings: Injected application settings.
        qdrant_service: Injected Qdrant service.

    Returns:
        HealthResponse: Health status information.
    """
    indexed: int | None = None
    status = "healthy"
    try:
        if await qdrant_service.collection_exists():
            indexed = await qdrant_service.count_points()
        else:
            indexed = 0
    except Exception as exc:
        logger.warning("Index unreachable during health check: %s", exc)
        status = "degraded"

    return HealthResponse(
        status=status,
        version=settings.app_version,
        environment=settings.environment,
        indexed_hospitals=indexed,
    )
