"""HTTP surface: the computer catalog routes and the SSR dashboard."""

from fastapi import APIRouter

from computer_catalog.api import computers, dashboard

router = APIRouter()
router.include_router(computers.router)
router.include_router(dashboard.router)

__all__ = ["router"]
