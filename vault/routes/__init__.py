"""API routes package."""

from vault.routes.object_routes import router as object_router
from vault.routes.sharing_routes import router as sharing_router

__all__ = ["object_router", "sharing_router"]
