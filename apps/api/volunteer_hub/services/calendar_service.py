"""Calendar service - events, RSVPs, and capacity rules."""

import calendar
import logging
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from volunteer_hub.core.config import settings
from volunteer_hub.db.enums import EventType, RsvpStatus
from volunteer_hub.db.models import CalendarEvent, EventSignup, User
from volunteer_hub.schemas.calendar import (
    Attendee, EventCreate, EventRead, EventUpdate,
)
from volunteer_hub.utils.dates import utc_now
from volunteer_hub.utils.meeting import parse_meeting_info, strip_meeting_info
from volunteer_hub.utils.names import display_name

logger = logging.getLogger(__name__)

CAPACITY_REACHED = "This event has reached maximum capacity"
PAST_WINDOW_DAYS = 7
FUTURE_WINDOW_MONTHS = 3


# =============================================================================
# Capacity
# =============================================================================

def confirmed_count(event: CalendarEvent) -> int:
    return sum(1 for s in event.signups if s.status == RsvpStatus.SIGNED_UP.value)


def can_signup(max_volunteers: int | None, confirmed_signups: int) -> bool:
    """Unlimited events always accept signups; capped events until full."""
    return max_volunteers is None or confirmed_signups < max_volunteers


# =============================================================================
# Queries
# =============================================================================

def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _base_query(db: Session, org_id: UUID):
    return (
        db.query(CalendarEvent)
        .options(selectinload(CalendarEvent.signups))
        .filter(CalendarEvent.organization_id == org_id)
    )


def list_events(
    db: Session,
    org_id: UUID,
    upcoming: bool = False,
    month: int | None = None,
    year: int | None = None,
    limit: int | None = None,
    today: date | None = None,
) -> list[CalendarEvent]:
    """
    Events in one of three windows.

    - upcoming: from today on
    - month/year: events overlapping that month
    - default: 7 days back to 3 months ahead
    """
    today = today or utc_now().date()
    query = _base_query(db, org_id)
    event_end = func.coalesce(CalendarEvent.end_date, CalendarEvent.start_date)

    if upcoming:
        query = query.filter(event_end >= today)
    elif month and year:
        if not 1 <= month <= 12:
            raise ValueError("Month must be between 1 and 12")
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        query = query.filter(CalendarEvent.start_date <= last, event_end >= first)
    else:
        window_start = today - timedelta(days=PAST_WINDOW_DAYS)
        window_end = _add_months(today, FUTURE_WINDOW_MONTHS)
        query = query.filter(
            CalendarEvent.start_date <= window_end, event_end >= window_start
        )

    query = query.order_by(
        CalendarEvent.start_date.asc(),
        CalendarEvent.start_time.is_(None).desc(),
        CalendarEvent.start_time.asc(),
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def get_event(db: Session, org_id: UUID, event_id: UUID) -> CalendarEvent | None:
    return _base_query(db, org_id).filter(CalendarEvent.id == event_id).first()


def get_signup(event: CalendarEvent, user_id: UUID) -> EventSignup | None:
    for signup in event.signups:
        if signup.user_id == user_id:
            return signup
    return None


# =============================================================================
# Mutations
# =============================================================================

def _lift_meeting_markers(fields: dict) -> dict:
    """Move legacy meeting markers out of the description into columns."""
    description = fields.get("description")
    info = parse_meeting_info(description)
    if not info:
        return fields
    fields["description"] = strip_meeting_info(description) or None
    for key in ("video_link", "meeting_id", "meeting_passcode"):
        if not fields.get(key):
            fields[key] = getattr(info, key)
    return fields


def create_event(
    db: Session,
    org_id: UUID,
    user_id: UUID | None,
    data: EventCreate,
) -> CalendarEvent:
    fields = _lift_meeting_markers(data.model_dump())
    fields["event_type"] = data.event_type.value
    fields["title"] = data.title.strip()
    if not fields.get("end_date"):
        fields["end_date"] = data.start_date

    event = CalendarEvent(organization_id=org_id, created_by=user_id, **fields)
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Event created id=%s org=%s", event.id, org_id)
    return event


def update_event(db: Session, event: CalendarEvent, data: EventUpdate) -> CalendarEvent:
    """
    Update event fields.

    Uses exclude_unset=True so only explicitly provided fields are updated;
    title, start_date, event_type and is_all_day ignore None.

    Raises:
        ValueError: Empty update or end date before start date
    """
    update_data = data.model_dump(exclude_unset=True)
    if not update_data:
        raise ValueError("No fields to update")
    if "description" in update_data:
        update_data = _lift_meeting_markers(update_data)

    required_fields = {"title", "start_date", "event_type", "is_all_day"}
    for field, value in update_data.items():
        if value is None and field in required_fields:
            continue
        if isinstance(value, EventType):
            value = value.value
        setattr(event, field, value)

    if event.end_date and event.end_date < event.start_date:
        db.rollback()
        raise ValueError("end_date cannot be before start_date")

    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, event: CalendarEvent) -> None:
    db.delete(event)
    db.commit()
    logger.info("Event deleted id=%s", event.id)


def rsvp(
    db: Session,
    event: CalendarEvent,
    user_id: UUID,
    status: RsvpStatus,
    notes: str | None = None,
) -> EventSignup:
    """
    Upsert the caller's RSVP.

    A new signed_up is rejected when the event is full. A user moving from
    cancelled back to signed_up is let through when
    RSVP_CANCELLED_BYPASS_CAPACITY is on. Re-saving an existing signed_up
    never fails.

    Raises:
        ValueError: Event at capacity
    """
    signup = get_signup(event, user_id)
    prior_status = signup.status if signup else None

    if status == RsvpStatus.SIGNED_UP and prior_status != RsvpStatus.SIGNED_UP.value:
        has_room = can_signup(event.max_volunteers, confirmed_count(event))
        bypass = (
            prior_status == RsvpStatus.CANCELLED.value
            and settings.RSVP_CANCELLED_BYPASS_CAPACITY
        )
        if not has_room and not bypass:
            raise ValueError(CAPACITY_REACHED)
        if not has_room:
            logger.info("RSVP capacity bypass event=%s user=%s", event.id, user_id)

    if signup:
        signup.status = status.value
        signup.notes = notes
    else:
        signup = EventSignup(event_id=event.id, user_id=user_id, status=status.value, notes=notes)
        event.signups.append(signup)

    db.commit()
    db.refresh(event)
    db.refresh(signup)
    return signup


# =============================================================================
# Serialization
# =============================================================================

def _attendees(db: Session, event: CalendarEvent) -> list[Attendee]:
    user_ids = [s.user_id for s in event.signups]
    users = {u.id: u for u in db.query(User).filter(User.id.in_(user_ids)).all()} if user_ids else {}
    attendees = []
    for signup in sorted(event.signups, key=lambda s: s.created_at):
        user = users.get(signup.user_id)
        attendees.append(Attendee(
            user_id=signup.user_id,
            name=display_name(user),
            email=user.email if user else "",
            status=RsvpStatus(signup.status),
            notes=signup.notes,
            signed_up_at=signup.created_at,
        ))
    return attendees


def to_event_read(
    db: Session,
    event: CalendarEvent,
    viewer_id: UUID | None,
    include_attendees: bool = False,
) -> EventRead:
    confirmed = confirmed_count(event)
    mine = get_signup(event, viewer_id) if viewer_id else None
    creator = db.get(User, event.created_by) if event.created_by else None
    spots = (
        max(event.max_volunteers - confirmed, 0)
        if event.max_volunteers is not None
        else None
    )
    return EventRead(
        id=event.id,
        title=event.title,
        description=event.description,
        location=event.location,
        start_date=event.start_date,
        end_date=event.end_date,
        start_time=event.start_time,
        end_time=event.end_time,
        is_all_day=event.is_all_day,
        event_type=EventType(event.event_type),
        max_volunteers=event.max_volunteers,
        video_link=event.video_link,
        meeting_id=event.meeting_id,
        meeting_passcode=event.meeting_passcode,
        created_by=event.created_by,
        created_by_name=display_name(creator) if creator else None,
        created_at=event.created_at,
        total_signups=len(event.signups),
        confirmed_signups=confirmed,
        spots_remaining=spots,
        can_signup=can_signup(event.max_volunteers, confirmed),
        user_rsvp_status=RsvpStatus(mine.status) if mine else None,
        user_signup_notes=mine.notes if mine else None,
        attendees=_attendees(db, event) if include_attendees else None,
    )


def user_is_attending(event: CalendarEvent, user_id: UUID) -> bool:
    return get_signup(event, user_id) is not None

