"""HTTP API layer."""

from treasurylens.api.router import api_router

__all__ = ["api_router"]
