"""
Organizer/admin guard shared by every participant operation that reads or
changes someone else's registration.
"""

from eventreg.core.exceptions import ForbiddenError
from eventreg.core.logging import get_logger
from eventreg.core.metrics import access_denied
from eventreg.core.security import CurrentUser
from eventreg.models.event import Event

logger = get_logger(__name__)


def can_manage(event: Event, user: CurrentUser) -> bool:
    return event.organizer_id == user.id or user.is_admin


def ensure_can_manage(event: Event, user: CurrentUser) -> None:
    """Raise 403 unless the caller organizes the event or is an admin."""
    if not can_manage(event, user):
        access_denied.inc()
        logger.warning(
            "access_denied",
            event_id=event.id,
            user_id=user.id,
            role=user.role,
        )
        raise ForbiddenError("Access denied")
