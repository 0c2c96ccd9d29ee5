"""Initial schema: events and participants with counters, indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Events table (rows are owned by the event service, we move the counters)
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000), nullable=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("venue", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("total_registrations", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_attendees", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("organizer_id", sa.Integer(), nullable=False),
        sa.Column("requires_approval", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("total_registrations >= 0", name="check_total_registrations_non_negative"),
        sa.CheckConstraint("total_attendees >= 0", name="check_total_attendees_non_negative"),
        sa.CheckConstraint("capacity IS NULL OR capacity > 0", name="check_capacity_positive"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])
    # Registration only accepts published events; listings filter on status + date
    op.create_index("ix_events_status_date", "events", ["status", "date"])

    # Participants table
    op.create_table(
        "participants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "event_id",
            sa.Integer(),
            sa.ForeignKey("events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("organization", sa.String(255), nullable=True),
        sa.Column("notes", sa.String(1000), nullable=True),
        sa.Column("ticket_number", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'registered'")),
        sa.Column("checked_in", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_in_method", sa.String(50), nullable=False, server_default=sa.text("'manual'")),
        sa.Column("registration_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # One registration per email per event; also catches racing duplicate sign-ups
        sa.UniqueConstraint("event_id", "email", name="uq_participant_event_email"),
        sa.UniqueConstraint("ticket_number", name="uq_participants_ticket_number"),
        sa.CheckConstraint(
            "status IN ('registered', 'confirmed', 'attended', 'cancelled')",
            name="check_participant_status",
        ),
    )
    op.create_index("ix_participants_id", "participants", ["id"])
    op.create_index("ix_participants_event_id", "participants", ["event_id"])
    op.create_index("ix_participants_event_status", "participants", ["event_id", "status"])
    # Default listing order: newest registration first within an event
    op.create_index(
        "ix_participants_event_registration_date",
        "participants",
        ["event_id", "registration_date"],
    )


def downgrade() -> None:
    op.drop_table("participants")
    op.drop_table("events")
