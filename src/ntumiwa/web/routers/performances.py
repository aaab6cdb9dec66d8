from typing import Annotated

from fastapi import APIRouter, Query

from ntumiwa.core.modules.event.models import PerformanceView
from ntumiwa.web.deps import AppDep
from ntumiwa.web.openapi import ErrorResponse

router = APIRouter(tags=["public"])


@router.get(
    "/performances",
    summary="List public performances",
    description="Published events for the public site, without internal ids. No authentication required.",
    operation_id="listPerformances",
    responses={400: {"model": ErrorResponse, "description": "Missing or invalid timeframe"}},
)
async def list_performances(
    app: AppDep, timeframe: Annotated[str | None, Query(description="'upcoming' or 'past'")] = None
) -> list[PerformanceView]:
    return await app.get_performances(timeframe)
