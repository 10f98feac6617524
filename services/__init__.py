"""
Business logic services.

Each service handles one domain area.
"""

from services.catalog_service import CatalogService, get_catalog_service
from services.mapping_service import MappingService, get_mapping_service
from services.match_service import MatchService, get_match_service
from services.web_sales_service import (
    WebSalesService,
    get_web_sales_service,
    normalize_report_month,
)

__all__ = [
    "CatalogService",
    "get_catalog_service",
    "MappingService",
    "get_mapping_service",
    "MatchService",
    "get_match_service",
    "WebSalesService",
    "get_web_sales_service",
    "normalize_report_month",
]
