"""
Channel import API routes.

Flow for one channel report:
    parse or resolve -> operator reviews unresolved/duplicates
    -> learn corrections -> confirm quantities -> verify later
"""

from fastapi import APIRouter, UploadFile, File
from fastapi.responses import JSONResponse
import structlog

from config import settings
from models.channel import Channel
from models.matching import BatchResolveRequest, BatchResolveResponse
from models.web_sales import (
    ConfirmRequest,
    ConfirmResponse,
    VerifyRequest,
    VerifyResponse,
)
from parsers.channel_csv_parser import parse_channel_csv
from services.catalog_service import get_catalog_service
from services.match_service import get_match_service
from services.web_sales_service import get_web_sales_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/{channel}/resolve", response_model=BatchResolveResponse)
async def resolve_rows(channel: Channel, data: BatchResolveRequest):
    """
    Resolve channel sales rows against the catalog.

    Uses the catalog snapshot in the body when given, else the live catalog.

    Raises:
        422: Malformed catalog entry or catalog over the size limit
        500: Datastore failure
    """
    try:
        catalog = data.catalog
        if catalog is None:
            catalog = get_catalog_service().get_catalog()

        return get_match_service().resolve_batch(channel, data.rows, catalog)

    except Exception as e:
        return handle_error(e)


@router.post("/{channel}/parse", response_model=BatchResolveResponse)
async def parse_report(channel: Channel, file: UploadFile = File(...)):
    """
    Upload a channel report CSV and resolve it.

    Raises:
        422: File unreadable or required columns missing
        500: Datastore failure
    """
    try:
        logger.info("channel_report_uploaded", channel=channel.value, filename=file.filename)

        contents = await file.read()
        parsed = parse_channel_csv(contents, channel, encoding=settings.csv_encoding)
        catalog = get_catalog_service().get_catalog()

        return get_match_service().resolve_batch(channel, parsed.rows, catalog)

    except Exception as e:
        return handle_error(e)


@router.post("/{channel}/confirm", response_model=ConfirmResponse)
async def confirm_import(channel: Channel, data: ConfirmRequest):
    """
    Store confirmed monthly quantities for the channel.

    Raises:
        422: Invalid report month
        500: Datastore failure
    """
    try:
        service = get_web_sales_service()
        return service.confirm(channel, data.report_month, data.items)

    except Exception as e:
        return handle_error(e)


@router.post("/{channel}/verify", response_model=VerifyResponse)
async def verify_import(channel: Channel, data: VerifyRequest):
    """
    Compare a channel report with the stored month.

    Raises:
        422: Invalid report month
        500: Datastore failure
    """
    try:
        catalog = get_catalog_service().get_catalog()
        service = get_web_sales_service()
        return service.verify(channel, data.report_month, data.rows, catalog)

    except Exception as e:
        return handle_error(e)
