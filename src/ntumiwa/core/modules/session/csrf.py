import hmac

from ntumiwa.core.modules.session.models import CSRF_TOKEN, Session

CSRF_FORM_FIELD = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"
UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def requires_csrf_check(method: str) -> bool:
    return method.upper() in UNSAFE_METHODS


def select_submitted_token(form_value: object, header_value: str | None) -> str | None:
    """Form field wins, the header is the fallback when the field is absent or empty."""
    if isinstance(form_value, str) and form_value:
        return form_value
    return header_value or None


def verify_csrf_token(session: Session, submitted: str | None) -> bool:
    """Compare a submitted token to the session's token in constant time.

    Token length is not secret, so a length mismatch is rejected before the
    comparison.
    """
    expected = session.get(CSRF_TOKEN)
    if not isinstance(expected, str) or not expected or submitted is None:
        return False
    if len(expected) != len(submitted):
        return False
    return hmac.compare_digest(expected.encode("utf-8"), submitted.encode("utf-8"))
