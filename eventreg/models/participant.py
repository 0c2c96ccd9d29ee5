"""
Participant model: one person registered to one event.

Key design decisions:
- Unique constraint on (event_id, email) prevents duplicate registrations,
  even when two sign-ups race past the application-level check
- ticket_number is unique across all events
- Deleting an event cascades to its participants
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from eventreg.db.base import Base, TimestampMixin


class ParticipantStatus:
    REGISTERED = "registered"
    CONFIRMED = "confirmed"
    ATTENDED = "attended"
    CANCELLED = "cancelled"

    ALL = (REGISTERED, CONFIRMED, ATTENDED, CANCELLED)


DEFAULT_CHECK_IN_METHOD = "manual"


class Participant(Base, TimestampMixin):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    organization = Column(String(255), nullable=True)
    notes = Column(String(1000), nullable=True)

    ticket_number = Column(String(20), nullable=False, unique=True)
    status = Column(String(20), nullable=False, default=ParticipantStatus.REGISTERED)
    checked_in = Column(Boolean, nullable=False, default=False)
    check_in_time = Column(DateTime(timezone=True), nullable=True)
    check_in_method = Column(String(50), nullable=False, default=DEFAULT_CHECK_IN_METHOD)
    registration_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    event = relationship("Event", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("event_id", "email", name="uq_participant_event_email"),
        CheckConstraint(
            "status IN ('registered', 'confirmed', 'attended', 'cancelled')",
            name="check_participant_status",
        ),
        Index("ix_participants_event_status", "event_id", "status"),
        Index("ix_participants_event_registration_date", "event_id", "registration_date"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return (
            f"<Participant(id={self.id}, event={self.event_id}, "
            f"ticket={self.ticket_number}, status={self.status})>"
        )
