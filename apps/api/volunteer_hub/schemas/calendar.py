"""Pydantic schemas for calendar events and RSVPs."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from volunteer_hub.db.enums import DEFAULT_EVENT_TYPE, EventType, RsvpStatus


class EventCreate(BaseModel):
    """Request to create an event."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    location: str | None = Field(None, max_length=255)
    start_date: date
    end_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    is_all_day: bool = False
    event_type: EventType = DEFAULT_EVENT_TYPE
    max_volunteers: int | None = Field(None, ge=1)
    video_link: str | None = Field(None, max_length=500)
    meeting_id: str | None = Field(None, max_length=100)
    meeting_passcode: str | None = Field(None, max_length=100)

    @model_validator(mode="after")
    def _check_dates(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class EventUpdate(BaseModel):
    """Request to update an event (partial)."""
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    location: str | None = Field(None, max_length=255)
    start_date: date | None = None
    end_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    is_all_day: bool | None = None
    event_type: EventType | None = None
    max_volunteers: int | None = Field(None, ge=1)
    video_link: str | None = Field(None, max_length=500)
    meeting_id: str | None = Field(None, max_length=100)
    meeting_passcode: str | None = Field(None, max_length=100)


class Attendee(BaseModel):
    user_id: UUID
    name: str
    email: str
    status: RsvpStatus
    notes: str | None = None
    signed_up_at: datetime


class EventRead(BaseModel):
    """Event with signup counts computed for the caller."""
    id: UUID
    title: str
    description: str | None
    location: str | None
    start_date: date
    end_date: date | None
    start_time: time | None
    end_time: time | None
    is_all_day: bool
    event_type: EventType
    max_volunteers: int | None
    video_link: str | None = None
    meeting_id: str | None = None
    meeting_passcode: str | None = None
    created_by: UUID | None = None
    created_by_name: str | None = None
    created_at: datetime
    total_signups: int = 0
    confirmed_signups: int = 0
    spots_remaining: int | None = None
    can_signup: bool = True
    user_rsvp_status: RsvpStatus | None = None
    user_signup_notes: str | None = None
    attendees: list[Attendee] | None = None


class EventListResponse(BaseModel):
    success: bool = True
    events: list[EventRead]


class EventResponse(BaseModel):
    success: bool = True
    message: str | None = None
    event: EventRead


class RsvpRequest(BaseModel):
    status: RsvpStatus
    notes: str | None = Field(None, max_length=2000)


class RsvpRead(BaseModel):
    event_id: UUID
    user_id: UUID
    status: RsvpStatus
    notes: str | None = None


class RsvpResponse(BaseModel):
    success: bool = True
    message: str
    rsvp: RsvpRead
    event: EventRead
