"""
Participant endpoints nested under an event: public sign-up and the
organizer's participant list.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.core.config import get_settings
from eventreg.core.exceptions import handle_unexpected
from eventreg.core.metrics import record_registration, registration_latency
from eventreg.core.security import CurrentUser, get_current_user
from eventreg.db.session import get_db
from eventreg.schemas.participant import (
    ParticipantCreate,
    ParticipantListResponse,
    ParticipantMessageEnvelope,
    ParticipantResponse,
)
from eventreg.services.participant_service import list_participants, register_participant

settings = get_settings()
router = APIRouter(prefix="/events/{event_id}/participants", tags=["Registration"])


@router.post("", response_model=ParticipantMessageEnvelope, status_code=status.HTTP_201_CREATED)
@handle_unexpected("Failed to register participant", on_error=lambda: record_registration("error"))
async def register_endpoint(
    event_id: int,
    participant_data: ParticipantCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Register for a published event.

    Fails with 404 if the event does not exist, and with 400 if it is not
    published, is at capacity, or the email is already registered.
    """
    with registration_latency.time():
        participant = await register_participant(db, event_id, participant_data)
    return ParticipantMessageEnvelope(
        participant=ParticipantResponse.model_validate(participant),
        message="Registration successful",
    )


@router.get("", response_model=ParticipantListResponse)
@handle_unexpected("Failed to fetch participants")
async def list_endpoint(
    event_id: int,
    status_filter: Optional[str] = Query(None, alias="status"),
    checked_in: Optional[str] = Query(None, alias="checkedIn"),
    search: Optional[str] = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List an event's participants. Organizer or admin only."""
    participants, total, total_pages = await list_participants(
        db,
        event_id,
        user,
        status=status_filter,
        checked_in=checked_in,
        search=search,
        page=page,
        limit=limit,
    )
    return ParticipantListResponse(
        participants=[ParticipantResponse.model_validate(p) for p in participants],
        total=total,
        page=page,
        total_pages=total_pages,
    )
