"""Top-level API router; mounts all domain routers under /api/v1."""

from fastapi import APIRouter

from treasurylens.api.routes import treasury

api_router = APIRouter()
api_router.include_router(treasury.router, prefix="/treasury", tags=["treasury"])
