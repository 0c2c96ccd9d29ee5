"""
Participant service: registration, listing, edits and check-in.

COUNTER STRATEGY: Atomic increments
===================================

Events carry two denormalized counters, total_registrations and
total_attendees. Every change is a single statement:

  UPDATE events SET total_registrations = total_registrations + :n WHERE id = :event_id

so concurrent requests never lose an update. Reading the counter into
Python, adding one and writing it back would.

Known gaps kept on purpose:
  - The capacity check (read) and the increment (write) are separate
    statements. Two concurrent sign-ups for the last seat can both pass the
    check. Set STRICT_CAPACITY=true to read the event with SELECT ... FOR
    UPDATE, which serializes registrations per event.
  - Bulk check-in authorizes against the event of the first participant
    only and assumes the whole batch belongs to that event.

All writes of one request share the request session (see db.session.get_db),
so a participant delete and its counter decrement commit or roll back
together.
"""

import math
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from eventreg.core.config import get_settings
from eventreg.core.exceptions import (
    BadRequestError,
    CapacityExceededError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
)
from eventreg.core.logging import get_logger
from eventreg.core.metrics import checkin_conflicts, record_checkins, record_registration
from eventreg.core.security import CurrentUser
from eventreg.models.event import Event, EventStatus
from eventreg.models.participant import DEFAULT_CHECK_IN_METHOD, Participant, ParticipantStatus
from eventreg.schemas.participant import ParticipantCreate, ParticipantUpdate
from eventreg.services.authorization import ensure_can_manage
from eventreg.services.email_templates import registration_confirmation_template, registration_subject
from eventreg.services.notifications import add_email_job
from eventreg.services.tickets import generate_ticket_number

logger = get_logger(__name__)
settings = get_settings()

NULLABLE_UPDATE_FIELDS = {"phone", "organization", "notes"}


async def _adjust_event_counter(db: AsyncSession, event_id: int, column: str, by: int) -> None:
    """Atomically add `by` (may be negative) to one of the event counters."""
    if by == 0:
        return
    counter = getattr(Event, column)
    await db.execute(
        update(Event)
        .where(Event.id == event_id)
        .values({column: counter + by})
    )


async def _get_event(db: AsyncSession, event_id: int, lock: bool = False) -> Event:
    query = select(Event).where(Event.id == event_id)
    if lock:
        query = query.with_for_update()
    event = (await db.execute(query)).scalar_one_or_none()
    if not event:
        raise NotFoundError("Event not found")
    return event


async def _find_registration(db: AsyncSession, event_id: int, email: str) -> Optional[int]:
    result = await db.execute(
        select(Participant.id).where(
            Participant.event_id == event_id,
            Participant.email == email,
        )
    )
    return result.scalar_one_or_none()


async def _get_managed_participant(
    db: AsyncSession,
    participant_id: int,
    user: CurrentUser,
    with_event: bool = False,
) -> tuple[Participant, Event]:
    """Load a participant and its event, enforcing the organizer/admin rule."""
    query = select(Participant).where(Participant.id == participant_id)
    if with_event:
        query = query.options(selectinload(Participant.event)).execution_options(
            populate_existing=True
        )
    participant = (await db.execute(query)).scalar_one_or_none()
    if not participant:
        raise NotFoundError("Participant not found")

    event = await _get_event(db, participant.event_id)
    ensure_can_manage(event, user)
    return participant, event


def _apply_check_in(participant: Participant, method: str, when: datetime) -> None:
    participant.checked_in = True
    participant.check_in_time = when
    participant.check_in_method = method
    participant.status = ParticipantStatus.ATTENDED


async def register_participant(
    db: AsyncSession,
    event_id: int,
    data: ParticipantCreate,
) -> Participant:
    """
    Register a participant for a published event.

    Checks, in order: event exists, event is published, capacity left,
    email not yet registered for this event. Then issues a ticket, bumps
    total_registrations and queues the confirmation email.
    """
    try:
        event = await _get_event(db, event_id, lock=settings.STRICT_CAPACITY)
    except NotFoundError:
        record_registration("not_found")
        raise

    if event.status != EventStatus.PUBLISHED:
        record_registration("not_open")
        raise InvalidStateError("Event is not open for registration")

    if event.is_full:
        record_registration("full")
        logger.warning(
            "registration_rejected_full",
            event_id=event_id,
            capacity=event.capacity,
            registered=event.total_registrations,
        )
        raise CapacityExceededError("Event is at full capacity")

    if await _find_registration(db, event_id, data.email) is not None:
        record_registration("duplicate")
        raise ConflictError("Already registered for this event")

    participant = Participant(
        **data.model_dump(),
        event_id=event_id,
        ticket_number=generate_ticket_number(),
        status=(
            ParticipantStatus.REGISTERED
            if event.requires_approval
            else ParticipantStatus.CONFIRMED
        ),
        checked_in=False,
        check_in_method=DEFAULT_CHECK_IN_METHOD,
    )
    db.add(participant)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        # lost the (event_id, email) race against a concurrent sign-up.
        # Any other violation (a ticket number collision) is a server error.
        if await _find_registration(db, event_id, data.email) is None:
            raise
        record_registration("duplicate")
        raise ConflictError("Already registered for this event")

    email_job = {
        "to": participant.email,
        "subject": registration_subject(event.name),
        "html": registration_confirmation_template(
            name=participant.full_name,
            event_name=event.name,
            event_date=event.date,
            event_venue=event.venue,
            ticket_number=participant.ticket_number,
        ),
    }

    await _adjust_event_counter(db, event_id, "total_registrations", 1)
    await db.refresh(participant)

    # fire-and-forget, a failed enqueue does not undo the registration
    await add_email_job(email_job)

    record_registration("success")
    logger.info(
        "participant_registered",
        participant_id=participant.id,
        event_id=event_id,
        ticket=participant.ticket_number,
        status=participant.status,
    )
    return participant


async def list_participants(
    db: AsyncSession,
    event_id: int,
    user: CurrentUser,
    status: Optional[str] = None,
    checked_in: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[Participant], int, int]:
    """
    Filtered, paginated participants of one event, newest registration first.
    Returns (participants, total, total_pages).
    """
    event = await _get_event(db, event_id)
    ensure_can_manage(event, user)

    conditions = [Participant.event_id == event_id]
    if status:
        conditions.append(Participant.status == status)
    if checked_in is not None:
        conditions.append(Participant.checked_in == (checked_in == "true"))
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(
                Participant.first_name.ilike(pattern),
                Participant.last_name.ilike(pattern),
                Participant.email.ilike(pattern),
            )
        )

    count_query = select(func.count()).select_from(Participant).where(*conditions)
    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(
        select(Participant)
        .where(*conditions)
        .order_by(Participant.registration_date.desc(), Participant.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    participants = list(result.scalars().all())

    return participants, total, math.ceil(total / limit)


async def get_participant(db: AsyncSession, participant_id: int, user: CurrentUser) -> Participant:
    """Participant with its event (id, name, date, venue) loaded."""
    participant, _ = await _get_managed_participant(db, participant_id, user, with_event=True)
    return participant


async def update_participant(
    db: AsyncSession,
    participant_id: int,
    user: CurrentUser,
    data: ParticipantUpdate,
) -> Participant:
    participant, event = await _get_managed_participant(db, participant_id, user)

    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_UPDATE_FIELDS
    }

    new_email = changes.get("email")
    if new_email and new_email != participant.email:
        clash = await db.execute(
            select(Participant.id).where(
                Participant.event_id == participant.event_id,
                Participant.email == new_email,
                Participant.id != participant.id,
            )
        )
        if clash.scalar_one_or_none() is not None:
            raise ConflictError("Already registered for this event")

    for field, value in changes.items():
        setattr(participant, field, value)

    await db.flush()
    await db.refresh(participant)

    logger.info(
        "participant_updated",
        participant_id=participant.id,
        event_id=event.id,
        fields=sorted(changes),
        user_id=user.id,
    )
    return participant


async def delete_participant(db: AsyncSession, participant_id: int, user: CurrentUser) -> None:
    """Remove the registration and give the seat back to the event."""
    participant, event = await _get_managed_participant(db, participant_id, user)

    await db.delete(participant)
    await db.flush()
    await _adjust_event_counter(db, event.id, "total_registrations", -1)

    logger.info(
        "participant_deleted",
        participant_id=participant_id,
        event_id=event.id,
        user_id=user.id,
    )


async def check_in_participant(
    db: AsyncSession,
    participant_id: int,
    user: CurrentUser,
    check_in_method: str = DEFAULT_CHECK_IN_METHOD,
) -> Participant:
    participant, event = await _get_managed_participant(db, participant_id, user)

    if participant.checked_in:
        checkin_conflicts.inc()
        raise ConflictError("Participant already checked in")

    _apply_check_in(participant, check_in_method, datetime.now(timezone.utc))
    await db.flush()
    await _adjust_event_counter(db, event.id, "total_attendees", 1)
    await db.refresh(participant)

    record_checkins(1, check_in_method)
    logger.info(
        "participant_checked_in",
        participant_id=participant.id,
        event_id=event.id,
        method=check_in_method,
    )
    return participant


def _coerce_id(value) -> int:
    """Accept integer ids and their decimal string form ("12")."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value)
    raise BadRequestError("participantIds must contain integer ids")


async def bulk_check_in(
    db: AsyncSession,
    participant_ids,
    user: CurrentUser,
    check_in_method: str = DEFAULT_CHECK_IN_METHOD,
) -> list[Participant]:
    """
    Check in many participants at once.

    Already checked-in participants are skipped without error. The event of
    the first participant (lowest id) is authorized and receives the whole
    attendee increment.
    """
    if not isinstance(participant_ids, list):
        raise BadRequestError("participantIds must be an array")
    participant_ids = [_coerce_id(i) for i in participant_ids]

    result = await db.execute(
        select(Participant)
        .where(Participant.id.in_(participant_ids))
        .order_by(Participant.id)
    )
    participants = list(result.scalars().all())
    if not participants:
        raise NotFoundError("No participants found")

    event = await _get_event(db, participants[0].event_id)
    ensure_can_manage(event, user)

    stray = {p.event_id for p in participants if p.event_id != event.id}
    if stray:
        logger.warning(
            "bulk_checkin_mixed_events",
            authorized_event_id=event.id,
            other_event_ids=sorted(stray),
        )

    updated = []
    for participant in participants:
        if participant.checked_in:
            continue
        _apply_check_in(participant, check_in_method, datetime.now(timezone.utc))
        await db.flush()
        updated.append(participant)

    await _adjust_event_counter(db, event.id, "total_attendees", len(updated))
    for participant in updated:
        await db.refresh(participant)

    record_checkins(len(updated), check_in_method, bulk=True)
    logger.info(
        "participants_bulk_checked_in",
        event_id=event.id,
        requested=len(participant_ids),
        updated=len(updated),
        method=check_in_method,
    )
    return updated
