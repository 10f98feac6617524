"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    DatabaseError,

    # Mapping store
    StoreError,
    MappingNotFoundError,
    MappingTitleRequiredError,
    MappingProductRequiredError,

    # Matching
    MatchTitleRequiredError,
    CatalogEntryInvalidError,
    CatalogTooLargeError,

    # CSV parser
    ChannelCsvParseError,

    # Web sales
    InvalidReportMonthError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "DatabaseError",

    # Mapping store
    "StoreError",
    "MappingNotFoundError",
    "MappingTitleRequiredError",
    "MappingProductRequiredError",

    # Matching
    "MatchTitleRequiredError",
    "CatalogEntryInvalidError",
    "CatalogTooLargeError",

    # CSV parser
    "ChannelCsvParseError",

    # Web sales
    "InvalidReportMonthError",
]
