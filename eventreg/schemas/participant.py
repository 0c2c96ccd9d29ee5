"""
Pydantic schemas for participant request/response validation.

JSON on the wire is camelCase (firstName, ticketNumber, ...); request bodies
also accept the snake_case names.
"""

from datetime import datetime
from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from eventreg.models.participant import DEFAULT_CHECK_IN_METHOD

ParticipantStatusValue = Literal["registered", "confirmed", "attended", "cancelled"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ParticipantCreate(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    organization: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=1000)


class ParticipantUpdate(CamelModel):
    """
    Fields an organizer may edit. ticketNumber, checkedIn and checkInTime are
    only changed by registration and check-in, so they are rejected here.
    """

    model_config = ConfigDict(extra="forbid")

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    organization: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = Field(None, max_length=1000)
    status: Optional[ParticipantStatusValue] = None


class CheckInRequest(CamelModel):
    check_in_method: str = Field(DEFAULT_CHECK_IN_METHOD, min_length=1, max_length=50)


class BulkCheckInRequest(CamelModel):
    # Any so that a non-list value reaches the service and gets the 400
    participant_ids: Any = None
    check_in_method: str = Field(DEFAULT_CHECK_IN_METHOD, min_length=1, max_length=50)


class EventSummary(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    date: datetime
    venue: Optional[str]


class ParticipantResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    organization: Optional[str]
    notes: Optional[str]
    ticket_number: str
    status: str
    checked_in: bool
    check_in_time: Optional[datetime]
    check_in_method: str
    registration_date: datetime


class ParticipantDetailResponse(ParticipantResponse):
    event: EventSummary


class ParticipantEnvelope(CamelModel):
    participant: ParticipantResponse


class ParticipantDetailEnvelope(CamelModel):
    participant: ParticipantDetailResponse


class ParticipantMessageEnvelope(CamelModel):
    participant: ParticipantResponse
    message: str


class ParticipantListResponse(CamelModel):
    participants: list[ParticipantResponse]
    total: int
    page: int
    total_pages: int


class BulkCheckInResponse(CamelModel):
    message: str
    updated: list[ParticipantResponse]


class MessageResponse(CamelModel):
    message: str
