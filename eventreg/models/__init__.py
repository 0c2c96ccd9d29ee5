from eventreg.models.event import Event, EventStatus
from eventreg.models.participant import Participant, ParticipantStatus

__all__ = ["Event", "EventStatus", "Participant", "ParticipantStatus"]
