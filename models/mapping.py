"""
Learned channel mapping schemas.

A mapping remembers which product an exact channel title was confirmed as,
so the next import of that title skips similarity matching.
"""

from datetime import datetime
from typing import Optional
from pydantic import AliasChoices, Field

from models.base import CamelSchema, PaginatedResponse
from models.channel import CHANNEL_CONFIGS

# Accept the per-channel body keys the dashboard sends ("amazonTitle", ...)
_TITLE_KEYS = AliasChoices(
    "title",
    "channelTitle",
    "channel_title",
    *sorted({c.request_title_key for c in CHANNEL_CONFIGS.values()}),
)


class ChannelMapping(CamelSchema):
    """One learned title -> product mapping."""

    channel_title: str = Field(..., description="Raw title as it appears on the channel")
    product_id: str = Field(..., description="Mapped product id")
    updated_at: Optional[datetime] = Field(None, description="Last confirmation time")


class LearnRequest(CamelSchema):
    """
    Learning write.

    Both fields are optional at the schema level so empty or missing values
    reach the service and come back as a descriptive validation error.
    """

    title: Optional[str] = Field(None, validation_alias=_TITLE_KEYS)
    product_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("productId", "product_id")
    )


class LearnResponse(CamelSchema):
    """Learning write outcome."""

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None


class ResetResponse(CamelSchema):
    """Learning reset outcome."""

    success: bool
    deleted_count: int = 0
    error: Optional[str] = None


class MappingListResponse(PaginatedResponse):
    """Paginated list of learned mappings."""

    data: list[ChannelMapping]
