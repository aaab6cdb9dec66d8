from typing import Any

from ntumiwa.core.modules.event.models import Event, EventStatus, Timeframe
from ntumiwa.errors import ConflictError, ValidationError
from ntumiwa.utils import ensure_not_blank, start_of_today

EDITABLE_FIELDS = frozenset({"title", "date", "ticket_link", "venue_id", "programme_id", "notes"})
REQUIRED_FOR_PUBLISHING = ("date", "ticket_link", "venue_id", "programme_id")


def parse_timeframe(value: str | None) -> Timeframe | None:
    if not value:
        return None
    try:
        return Timeframe(value)
    except ValueError:
        raise ValidationError(f"Invalid timeframe filter: '{value}'") from None


def parse_status(value: str | None) -> EventStatus | None:
    if not value:
        return None
    try:
        return EventStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status filter: '{value}'") from None


def build_event_query(timeframe: Timeframe | None, status: EventStatus | None) -> dict[str, Any]:
    """MongoDB filter for event lists; upcoming includes events later today."""
    query: dict[str, Any] = {}
    if timeframe is Timeframe.UPCOMING:
        query["date"] = {"$gte": start_of_today()}
    elif timeframe is Timeframe.PAST:
        query["date"] = {"$lt": start_of_today()}
    if status is not None:
        query["status"] = status.value
    return query


def validate_event_changes(changes: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial update.

    Absent keys are left unchanged, explicit None clears optional fields.
    The title can never be cleared or blank; blank ticket links and notes clear the field.
    """
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
    if not changes:
        raise ValidationError("Request body is empty")

    validated = dict(changes)
    if "title" in validated:
        if validated["title"] is None:
            raise ValidationError("title cannot be blank")
        validated["title"] = ensure_not_blank(validated["title"], "title")
    if validated.get("ticket_link") is not None:
        validated["ticket_link"] = validated["ticket_link"].strip() or None
    if validated.get("notes") is not None:
        validated["notes"] = validated["notes"].strip() or None
    return validated


def ensure_mutable(event: Event) -> None:
    if event.status is not EventStatus.DRAFT:
        raise ConflictError(f"'{event.status}' event is immutable; move it back to draft first")


def ensure_publishable(event: Event) -> None:
    missing = [name for name in REQUIRED_FOR_PUBLISHING if getattr(event, name) is None]
    if missing:
        raise ValidationError(f"Event is incomplete, missing: {', '.join(missing)}")
