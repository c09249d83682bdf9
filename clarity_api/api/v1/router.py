"""
Aggregate all v1 endpoint routers under the /v1 prefix.
"""

from fastapi import APIRouter

from clarity_api.api.v1.endpoints.clarity import router as clarity_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(clarity_router)
