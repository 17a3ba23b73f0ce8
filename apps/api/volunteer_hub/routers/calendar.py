"""Calendar router - events, RSVPs, and iCalendar export."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from volunteer_hub.core.deps import can_see_admin_content, get_db, get_org_session, require_roles
from volunteer_hub.db.enums import Role
from volunteer_hub.schemas.auth import UserSession
from volunteer_hub.schemas.calendar import (
    EventCreate, EventListResponse, EventResponse, EventUpdate, RsvpRead,
    RsvpRequest, RsvpResponse,
)
from volunteer_hub.schemas.common import SuccessResponse
from volunteer_hub.services import calendar_service, ics_service

router = APIRouter()

ADMIN_ROLES = [Role.NONPROFIT_ADMIN, Role.SUPER_ADMIN]


def _get_event_or_404(db: Session, event_id: UUID, org_id: UUID):
    event = calendar_service.get_event(db, org_id, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.get("/events", response_model=EventListResponse)
def list_events(
    upcoming: bool = False,
    month: int | None = Query(None, ge=1, le=12),
    year: int | None = Query(None, ge=1970, le=9999),
    limit: int | None = Query(None, ge=1, le=500),
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
):
    """
    List events.

    - upcoming=true: events ending today or later
    - month & year: events overlapping that month
    - otherwise: 7 days back to 3 months ahead
    """
    try:
        events = calendar_service.list_events(
            db, session.org_id, upcoming=upcoming, month=month, year=year, limit=limit
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return EventListResponse(
        events=[calendar_service.to_event_read(db, e, session.user_id) for e in events]
    )


@router.get("/upcoming", response_model=EventListResponse)
def upcoming_events(
    limit: int = Query(5, ge=1, le=50),
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
):
    events = calendar_service.list_events(db, session.org_id, upcoming=True, limit=limit)
    return EventListResponse(
        events=[calendar_service.to_event_read(db, e, session.user_id) for e in events]
    )


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(
    event_id: UUID,
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
):
    """Attendees are listed for admins and for users with an RSVP on the event."""
    event = _get_event_or_404(db, event_id, session.org_id)
    show_attendees = can_see_admin_content(session) or calendar_service.user_is_attending(
        event, session.user_id
    )
    return EventResponse(
        event=calendar_service.to_event_read(
            db, event, session.user_id, include_attendees=show_attendees
        )
    )


@router.post("/events", response_model=EventResponse, status_code=201)
def create_event(
    body: EventCreate,
    session: UserSession = Depends(require_roles(ADMIN_ROLES, org_scoped=True)),
    db: Session = Depends(get_db),
):
    event = calendar_service.create_event(db, session.org_id, session.member_id, body)
    return EventResponse(
        message="Event created successfully",
        event=calendar_service.to_event_read(db, event, session.user_id),
    )


@router.put("/events/{event_id}", response_model=EventResponse)
def update_event(
    event_id: UUID,
    body: EventUpdate,
    session: UserSession = Depends(require_roles(ADMIN_ROLES, org_scoped=True)),
    db: Session = Depends(get_db),
):
    event = _get_event_or_404(db, event_id, session.org_id)
    try:
        event = calendar_service.update_event(db, event, body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return EventResponse(
        message="Event updated successfully",
        event=calendar_service.to_event_read(db, event, session.user_id),
    )


@router.delete("/events/{event_id}", response_model=SuccessResponse)
def delete_event(
    event_id: UUID,
    session: UserSession = Depends(require_roles(ADMIN_ROLES, org_scoped=True)),
    db: Session = Depends(get_db),
):
    event = _get_event_or_404(db, event_id, session.org_id)
    calendar_service.delete_event(db, event)
    return SuccessResponse(message="Event deleted successfully")


@router.post("/events/{event_id}/rsvp", response_model=RsvpResponse)
def rsvp(
    event_id: UUID,
    body: RsvpRequest,
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
):
    """Sign up for or cancel attendance (upsert)."""
    if session.member_id is None:
        raise HTTPException(status_code=403, detail="Not available for super admin accounts")
    event = _get_event_or_404(db, event_id, session.org_id)
    try:
        signup = calendar_service.rsvp(db, event, session.user_id, body.status, body.notes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    message = (
        "Successfully signed up for event"
        if body.status.value == "signed_up"
        else "RSVP cancelled"
    )
    return RsvpResponse(
        message=message,
        rsvp=RsvpRead(
            event_id=event.id,
            user_id=signup.user_id,
            status=body.status,
            notes=signup.notes,
        ),
        event=calendar_service.to_event_read(db, event, session.user_id),
    )


@router.get("/events/{event_id}/export")
def export_event(
    event_id: UUID,
    session: UserSession = Depends(get_org_session),
    db: Session = Depends(get_db),
):
    """Download the event as an .ics file."""
    event = _get_event_or_404(db, event_id, session.org_id)
    content = ics_service.build_ics(event, session.org_name)
    filename = ics_service.export_filename(event.title)
    return Response(
        content=content,
        media_type=ics_service.ICS_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
