import logging

from fastapi import APIRouter, HTTPException, Query, Response, status, Depends

from summer.schemas.common import ErrorResponse
from summer.schemas.summary import Summary, SummaryListResponse
from summer.services.registry import Services
from summer.utils.auth import CurrentUser, get_current_user
from summer.utils.config import Settings
from summer.utils.dependencies import get_services, get_settings
from summer.utils.errors import SummaryNotFoundError


router = APIRouter(
    prefix="/summaries",
    tags=["summaries"],
)


@router.get("", response_model=SummaryListResponse)
async def list_summaries(
    limit: int | None = Query(None, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    services: Services = Depends(get_services),
    settings: Settings = Depends(get_settings),
):
    """Returns the user's summaries, newest first."""
    summaries = await services.summaries.list(
        user.user_id, limit or settings.default_summary_limit
    )
    return SummaryListResponse(summaries=summaries)


@router.delete(
    "/{summary_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_summary(
    summary_id: str,
    user: CurrentUser = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    if not await services.summaries.delete(user.user_id, summary_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Summary {summary_id} not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{summary_id}/regenerate",
    response_model=Summary,
    responses={404: {"model": ErrorResponse}},
)
async def regenerate_summary(
    summary_id: str,
    user: CurrentUser = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Deletes a summary and generates a fresh one for the same video."""
    try:
        return await services.summary_orchestrator.regenerate(user.user_id, summary_id)
    except SummaryNotFoundError as e:
        logging.warning(f"Regenerate requested for unknown summary: {e}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
