import logging

from fastapi import APIRouter, HTTPException, Header, status, Depends

from summer.schemas.common import ErrorResponse
from summer.schemas.summary import SyncReport
from summer.services.registry import Services
from summer.utils.auth import CurrentUser, get_current_user
from summer.utils.dependencies import get_services
from summer.utils.errors import SyncInProgressError


router = APIRouter(
    prefix="/sync",
    tags=["sync"],
)


@router.post(
    "",
    response_model=SyncReport,
    responses={409: {"model": ErrorResponse}},
)
async def sync_channels(
    x_google_access_token: str = Header(None),
    user: CurrentUser = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Refreshes channels from YouTube subscriptions and summarises new videos."""
    try:
        return await services.sync_orchestrator.sync(
            user.user_id, x_google_access_token
        )
    except SyncInProgressError as e:
        logging.warning(str(e))
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
