"""API routes for Rule Hub."""

from fastapi import APIRouter

from rulehub.api.config import router as config_router
from rulehub.api.packages import router as packages_router
from rulehub.api.rules import router as rules_router
from rulehub.api.setup import router as setup_router

api_router = APIRouter(prefix="/api")
api_router.include_router(setup_router, tags=["setup"])
api_router.include_router(packages_router, tags=["packages"])
api_router.include_router(rules_router, tags=["rules"])
api_router.include_router(config_router, tags=["config"])

__all__ = ["api_router"]
