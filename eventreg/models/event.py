"""
Event model with registration bookkeeping.

Key design decisions:
- `total_registrations` / `total_attendees` are denormalized counters
  (avoids COUNT queries on participants). They are only ever changed with
  single-statement `col = col + n` updates, see participant_service.
- `capacity` is nullable: NULL means unlimited registrations.
- Events themselves are managed by the event service; this service reads
  them and moves the counters.
"""

from sqlalchemy import Boolean, Column, Integer, String, DateTime, Index, CheckConstraint
from sqlalchemy.orm import relationship

from eventreg.db.base import Base, TimestampMixin


class EventStatus:
    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    ALL = (DRAFT, PUBLISHED, CLOSED, CANCELLED, COMPLETED)


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    venue = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=EventStatus.DRAFT)
    capacity = Column(Integer, nullable=True)
    total_registrations = Column(Integer, nullable=False, default=0)
    total_attendees = Column(Integer, nullable=False, default=0)
    organizer_id = Column(Integer, nullable=False, index=True)
    requires_approval = Column(Boolean, nullable=False, default=False)

    participants = relationship(
        "Participant",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("total_registrations >= 0", name="check_total_registrations_non_negative"),
        CheckConstraint("total_attendees >= 0", name="check_total_attendees_non_negative"),
        CheckConstraint("capacity IS NULL OR capacity > 0", name="check_capacity_positive"),
        Index("ix_events_status_date", "status", "date"),
    )

    @property
    def has_capacity_limit(self) -> bool:
        return self.capacity is not None

    @property
    def is_full(self) -> bool:
        return self.has_capacity_limit and self.total_registrations >= self.capacity

    def __repr__(self) -> str:
        return (
            f"<Event(id={self.id}, name={self.name}, status={self.status}, "
            f"registered={self.total_registrations}/{self.capacity})>"
        )
