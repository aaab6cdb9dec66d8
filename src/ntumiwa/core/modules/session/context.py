from dataclasses import dataclass

from structlog.typing import FilteringBoundLogger

from ntumiwa.core.modules.session.manager import SessionManager
from ntumiwa.core.modules.session.models import Session


@dataclass
class RequestSession:
    """Request-scoped carrier threaded from the session middleware to handlers.

    ``cookie_written`` guards the single ``Set-Cookie`` emission per response.
    """

    session: Session
    manager: SessionManager
    logger: FilteringBoundLogger
    cookie_written: bool = False
