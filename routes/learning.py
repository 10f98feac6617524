"""
Learning API routes.

One set of endpoints serves every channel; the channel is a path parameter.
Responses keep the {success, message/error} shape the dashboard expects.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.channel import Channel
from models.mapping import (
    ChannelMapping,
    LearnRequest,
    LearnResponse,
    ResetResponse,
    MappingListResponse,
)
from services.mapping_service import get_mapping_service
from exceptions import AppError, MappingNotFoundError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception, **extra) -> JSONResponse:
    """Convert exception to a {success: false} JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content={
                "success": False,
                "error": e.message,
                "code": e.code,
                **extra
            }
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
            **extra
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/{channel}", response_model=LearnResponse)
async def learn_mapping(channel: Channel, data: LearnRequest):
    """
    Learn a channel title -> product mapping.

    Re-learning a title replaces its product.

    Raises:
        422: Title or product id missing
        500: Datastore failure
    """
    try:
        service = get_mapping_service(channel)
        service.upsert(data.title, data.product_id)

        return LearnResponse(
            success=True,
            message=f"Learned {channel.config.display_name} mapping"
        )

    except Exception as e:
        return handle_error(e)


@router.post("/{channel}/reset", response_model=ResetResponse)
async def reset_learning(channel: Channel):
    """
    Delete all learned mappings for a channel.

    Run between imports, not while one is being confirmed.

    Raises:
        500: Datastore failure
    """
    try:
        service = get_mapping_service(channel)
        deleted = service.reset_all()

        return ResetResponse(success=True, deleted_count=deleted)

    except Exception as e:
        return handle_error(e, deletedCount=0)


@router.get("/{channel}", response_model=MappingListResponse)
async def list_mappings(
    channel: Channel,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=500, description="Items per page")
):
    """List learned mappings, most recently confirmed first."""
    try:
        service = get_mapping_service(channel)
        mappings, total = service.list_mappings(page=page, page_size=page_size)

        return MappingListResponse.create(
            data=mappings,
            total=total,
            page=page,
            page_size=page_size
        )

    except Exception as e:
        return handle_error(e)


@router.get("/{channel}/lookup", response_model=ChannelMapping)
async def lookup_mapping(
    channel: Channel,
    title: str = Query(..., min_length=1, description="Exact channel title")
):
    """
    Look up the learned product for an exact title.

    Raises:
        404: Title was never learned
    """
    try:
        service = get_mapping_service(channel)
        product_id = service.lookup(title)

        if product_id is None:
            raise MappingNotFoundError(channel.value, title)

        return ChannelMapping(channel_title=title, product_id=product_id)

    except Exception as e:
        return handle_error(e)
