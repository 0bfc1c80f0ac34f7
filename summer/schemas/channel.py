from pydantic import BaseModel, Field, model_validator

from summer.utils.text_utils import make_hint


DEFAULT_AVATAR_URL = "https://placehold.co/40x40.png"


class Channel(BaseModel):
    """A followed YouTube channel and whether it is monitored."""

    id: str = Field(..., min_length=1)
    name: str
    avatar_url: str = DEFAULT_AVATAR_URL
    avatar_hint: str = ""
    enabled: bool = True

    @model_validator(mode="after")
    def default_avatar_hint(self):
        if not self.avatar_hint:
            self.avatar_hint = make_hint(self.name)
        return self


class ChannelListResponse(BaseModel):
    channels: list[Channel]


class ChannelUpsertRequest(BaseModel):
    channels: list[Channel]


class ChannelToggleRequest(BaseModel):
    enabled: bool
