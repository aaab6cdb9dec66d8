from ntumiwa.web.routers.auth import router as auth_router
from ntumiwa.web.routers.composers import router as composers_router
from ntumiwa.web.routers.events import router as events_router
from ntumiwa.web.routers.performances import router as performances_router
from ntumiwa.web.routers.pieces import router as pieces_router
from ntumiwa.web.routers.programmes import router as programmes_router
from ntumiwa.web.routers.users import router as users_router
from ntumiwa.web.routers.venues import router as venues_router

__all__ = [
    "auth_router",
    "composers_router",
    "events_router",
    "performances_router",
    "pieces_router",
    "programmes_router",
    "users_router",
    "venues_router",
]
