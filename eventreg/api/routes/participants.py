"""
Participant endpoints: detail, edits, deletion and check-in.
Every operation requires the caller to organize the event or be an admin.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.core.exceptions import handle_unexpected
from eventreg.core.security import CurrentUser, get_current_user
from eventreg.db.session import get_db
from eventreg.schemas.participant import (
    BulkCheckInRequest,
    BulkCheckInResponse,
    CheckInRequest,
    MessageResponse,
    ParticipantDetailEnvelope,
    ParticipantDetailResponse,
    ParticipantEnvelope,
    ParticipantMessageEnvelope,
    ParticipantResponse,
    ParticipantUpdate,
)
from eventreg.services.participant_service import (
    bulk_check_in,
    check_in_participant,
    delete_participant,
    get_participant,
    update_participant,
)

router = APIRouter(prefix="/participants", tags=["Participants"])


@router.post("/bulk-checkin", response_model=BulkCheckInResponse)
@handle_unexpected("Failed to bulk check in")
async def bulk_checkin_endpoint(
    body: BulkCheckInRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Check in several participants of one event.
    Participants already checked in are skipped.
    """
    updated = await bulk_check_in(db, body.participant_ids, user, body.check_in_method)
    return BulkCheckInResponse(
        message=f"{len(updated)} participants checked in",
        updated=[ParticipantResponse.model_validate(p) for p in updated],
    )


@router.get("/{participant_id}", response_model=ParticipantDetailEnvelope)
@handle_unexpected("Failed to fetch participant")
async def get_endpoint(
    participant_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    participant = await get_participant(db, participant_id, user)
    return ParticipantDetailEnvelope(participant=ParticipantDetailResponse.model_validate(participant))


@router.api_route("/{participant_id}", methods=["PATCH", "PUT"], response_model=ParticipantEnvelope)
@handle_unexpected("Failed to update participant")
async def update_endpoint(
    participant_id: int,
    changes: ParticipantUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Partial update. Ticket number and check-in fields cannot be set here."""
    participant = await update_participant(db, participant_id, user, changes)
    return ParticipantEnvelope(participant=ParticipantResponse.model_validate(participant))


@router.delete("/{participant_id}", response_model=MessageResponse)
@handle_unexpected("Failed to delete participant")
async def delete_endpoint(
    participant_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a registration and release its seat."""
    await delete_participant(db, participant_id, user)
    return MessageResponse(message="Participant deleted successfully")


@router.post("/{participant_id}/checkin", response_model=ParticipantMessageEnvelope)
@handle_unexpected("Failed to check in participant")
async def checkin_endpoint(
    participant_id: int,
    body: Optional[CheckInRequest] = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    method = body.check_in_method if body else CheckInRequest().check_in_method
    participant = await check_in_participant(db, participant_id, user, method)
    return ParticipantMessageEnvelope(
        participant=ParticipantResponse.model_validate(participant),
        message="Check-in successful",
    )
