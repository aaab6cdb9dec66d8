"""HMAC-signed cookie values.

Wire format: ``base64url(HMAC-SHA256(key, name || value) || value)`` without
padding, so the value never needs quoting in a ``Set-Cookie`` header.
"""

import base64
import hashlib
import hmac

from ntumiwa.core.modules.session.errors import CookieValueTooLongError, InvalidCookieValueError

MAX_COOKIE_BYTES = 4096
SIGNATURE_SIZE = hashlib.sha256().digest_size


def encode(name: str, raw: bytes) -> str:
    """Base64url-encode a cookie payload, enforcing the size ceiling."""
    value = base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
    if len(f"{name}={value}") > MAX_COOKIE_BYTES:
        raise CookieValueTooLongError
    return value


def decode(value: str) -> bytes:
    """Strict base64url decode. Raises InvalidCookieValueError."""
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.b64decode(padded, altchars=b"-_", validate=True)
    except ValueError as e:
        raise InvalidCookieValueError from e


def sign(name: str, value: bytes, secret_key: bytes) -> bytes:
    mac = hmac.new(secret_key, digestmod=hashlib.sha256)
    mac.update(name.encode("utf-8"))
    mac.update(value)
    return mac.digest()


def write_signed(name: str, value: str, secret_key: bytes) -> str:
    """Return the signed, encoded cookie value for ``name``."""
    raw = value.encode("utf-8")
    return encode(name, sign(name, raw, secret_key) + raw)


def read_signed(name: str, cookie_value: str, secret_key: bytes) -> str:
    """Verify and return the raw value carried by a signed cookie."""
    signed = decode(cookie_value)
    if len(signed) < SIGNATURE_SIZE:
        raise InvalidCookieValueError

    signature, raw = signed[:SIGNATURE_SIZE], signed[SIGNATURE_SIZE:]
    if not hmac.compare_digest(signature, sign(name, raw, secret_key)):
        raise InvalidCookieValueError

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidCookieValueError from e
