"""
API v1 router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import campaigns, insights, wizard

api_router = APIRouter()

api_router.include_router(
    wizard.router,
    prefix="/wizard",
    tags=["wizard"]
)

api_router.include_router(
    campaigns.router,
    prefix="/campaigns",
    tags=["campaigns"]
)

api_router.include_router(
    insights.router,
    prefix="/campaigns",
    tags=["insights"]
)
