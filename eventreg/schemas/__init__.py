from eventreg.schemas.participant import (
    ParticipantCreate,
    ParticipantUpdate,
    ParticipantResponse,
    ParticipantDetailResponse,
    ParticipantListResponse,
    CheckInRequest,
    BulkCheckInRequest,
    BulkCheckInResponse,
)

__all__ = [
    "ParticipantCreate", "ParticipantUpdate",
    "ParticipantResponse", "ParticipantDetailResponse", "ParticipantListResponse",
    "CheckInRequest", "BulkCheckInRequest", "BulkCheckInResponse",
]
