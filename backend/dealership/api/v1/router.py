"""
API v1 router: aggregates all v1 route modules.
"""

from fastapi import APIRouter

from dealership.api.v1.accounts import router as accounts_router
from dealership.api.v1.auth import router as auth_router
from dealership.api.v1.health import router as health_router

api_v1_router = APIRouter()

api_v1_router.include_router(health_router)
api_v1_router.include_router(auth_router)
api_v1_router.include_router(accounts_router)
