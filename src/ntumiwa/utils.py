from datetime import UTC, datetime

from ntumiwa.errors import ValidationError


def now() -> datetime:
    return datetime.now(UTC)


def start_of_today() -> datetime:
    return now().replace(hour=0, minute=0, second=0, microsecond=0)


def ensure_not_blank(value: str, field: str) -> str:
    """Return the stripped value, raise ValidationError if nothing is left."""
    stripped = value.strip()
    if not stripped:
        raise ValidationError(f"{field} cannot be blank")
    return stripped


def short_id(session_id: str) -> str:
    """Prefix of a session id that is safe to put in logs."""
    return session_id[:8]
