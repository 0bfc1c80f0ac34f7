import logging

from fastapi import APIRouter, HTTPException, status, Depends

from summer.schemas.channel import (
    Channel,
    ChannelListResponse,
    ChannelToggleRequest,
    ChannelUpsertRequest,
)
from summer.schemas.common import ErrorResponse
from summer.services.default_channels import demo_channels
from summer.services.registry import Services
from summer.utils.auth import CurrentUser, get_current_user
from summer.utils.config import Settings
from summer.utils.dependencies import get_services, get_settings


router = APIRouter(
    prefix="/channels",
    tags=["channels"],
)


@router.get("", response_model=ChannelListResponse)
async def list_channels(
    user: CurrentUser = Depends(get_current_user),
    services: Services = Depends(get_services),
    settings: Settings = Depends(get_settings),
):
    """Returns the user's followed channels in stored order."""
    channels = await services.channels.list(user.user_id)
    if not channels and settings.seed_default_channels:
        logging.info(f"Seeding default channels for user {user.user_id}")
        channels = await services.channels.upsert(user.user_id, demo_channels())
    return ChannelListResponse(channels=channels)


@router.put("", response_model=ChannelListResponse)
async def replace_channels(
    request: ChannelUpsertRequest,
    user: CurrentUser = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Replaces the user's channel list wholesale."""
    channels = await services.channels.upsert(user.user_id, request.channels)
    return ChannelListResponse(channels=channels)


@router.patch(
    "/{channel_id}",
    response_model=Channel,
    responses={404: {"model": ErrorResponse}},
)
async def toggle_channel(
    channel_id: str,
    request: ChannelToggleRequest,
    user: CurrentUser = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Turns monitoring of one channel on or off."""
    channel = await services.channels.toggle(user.user_id, channel_id, request.enabled)
    if channel is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Channel {channel_id} not found",
        )
    return channel
