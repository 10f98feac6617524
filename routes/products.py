"""
Product catalog API routes (read-only).
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from models.product import ProductCatalogResponse
from services.catalog_service import get_catalog_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
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


@router.get("", response_model=ProductCatalogResponse)
async def list_catalog():
    """List matchable products (id, name, series, price)."""
    try:
        catalog = get_catalog_service().get_catalog()
        return ProductCatalogResponse(data=catalog, total=len(catalog))

    except Exception as e:
        return handle_error(e)
