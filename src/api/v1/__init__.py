"""Public v1 API router aggregation (API key authentication)."""

from fastapi import APIRouter

from src.api.v1.reports import router as reports_router

v1_router = APIRouter(prefix="/v1", tags=["API v1"])

v1_router.include_router(reports_router)

__all__ = ["v1_router"]
