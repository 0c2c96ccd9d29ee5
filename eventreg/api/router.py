"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from eventreg.api.routes import event_participants, participants

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(event_participants.router)
api_router.include_router(participants.router)
