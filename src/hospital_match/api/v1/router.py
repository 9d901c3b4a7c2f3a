"""Main API v1 router that combines all endpoint routers."""

from fastapi import APIRouter

from hospital_match.api.v1.endpoints import chat, health, search

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(health.router)
api_router.include_router(chat.router)
api_router.include_router(search.router)
