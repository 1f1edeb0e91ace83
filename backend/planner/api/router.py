"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from planner.api.routes import clients, guests

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(clients.router)
api_router.include_router(guests.router)
