import logging

from fastapi import APIRouter, Depends

from summer.schemas.summary import SummarizeRequest, SummarizeResponse
from summer.services.registry import Services
from summer.utils.auth import CurrentUser, get_current_user
from summer.utils.dependencies import get_services


router = APIRouter(
    tags=["summarize"],
)


@router.post("/summarize", response_model=SummarizeResponse)
async def summarize_video(
    request: SummarizeRequest,
    user: CurrentUser = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Generates a summary for one video on demand. Nothing is stored."""
    logging.info(f"On-demand summary requested for video: {request.video_id}")
    return await services.summary_orchestrator.summarize_on_demand(
        request.video_id,
        request.video_title,
        request.channel_name,
        user_id=user.user_id,
    )
