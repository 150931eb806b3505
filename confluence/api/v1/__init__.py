"""
API v1 Router

Read-only session views for the presentation layer, plus push ingestion.
"""

from fastapi import APIRouter

from confluence.api.v1.endpoints import session

router = APIRouter()

router.include_router(session.router, prefix="/session", tags=["Session"])
