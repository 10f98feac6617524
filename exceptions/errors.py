"""
Custom exception classes for the application.

Every error carries a machine-readable code, a human-readable message and
the HTTP status the routes answer with.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "MAPPING_TITLE_REQUIRED")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# MAPPING STORE ERRORS
# ===================

class StoreError(DatabaseError):
    """Mapping store operation failed against the backing datastore."""

    def __init__(self, channel: str, operation: str, message: str):
        super().__init__(
            operation=operation,
            message=message,
            details={"channel": channel}
        )
        self.code = "MAPPING_STORE_ERROR"
        self.channel = channel


class MappingNotFoundError(NotFoundError):
    """No learned mapping for a channel title."""

    def __init__(self, channel: str, title: str):
        super().__init__(
            resource="Mapping",
            identifier=title,
            code="MAPPING_NOT_FOUND"
        )
        self.details["channel"] = channel


class MappingTitleRequiredError(ValidationError):
    """Channel title missing on a learning write."""

    def __init__(self, channel: str):
        super().__init__(
            code="MAPPING_TITLE_REQUIRED",
            message=f"{channel} title is required",
            details={"channel": channel}
        )


class MappingProductRequiredError(ValidationError):
    """Product id missing on a learning write."""

    def __init__(self, channel: str):
        super().__init__(
            code="MAPPING_PRODUCT_REQUIRED",
            message="Product id is required",
            details={"channel": channel}
        )


# ===================
# MATCHING ERRORS
# ===================

class MatchTitleRequiredError(ValidationError):
    """Resolution requested for an empty title."""

    def __init__(self):
        super().__init__(
            code="MATCH_TITLE_REQUIRED",
            message="Title to match cannot be empty"
        )


class CatalogEntryInvalidError(ValidationError):
    """Catalog entry is missing a field the matcher needs."""

    def __init__(self, index: int, errors: list):
        super().__init__(
            code="CATALOG_ENTRY_INVALID",
            message=f"Catalog entry {index} is malformed",
            details={"index": index, "errors": errors}
        )


class CatalogTooLargeError(ValidationError):
    """Catalog has more entries than one resolution may scan."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            code="CATALOG_TOO_LARGE",
            message=f"Catalog has {size} entries; the limit is {limit}",
            details={"size": size, "limit": limit}
        )


# ===================
# CSV PARSER ERRORS
# ===================

class ChannelCsvParseError(ValidationError):
    """Channel sales report could not be parsed."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="CHANNEL_CSV_PARSE_ERROR",
            message=message,
            details=details
        )


# ===================
# WEB SALES ERRORS
# ===================

class InvalidReportMonthError(ValidationError):
    """Report month is not in YYYY-MM or YYYY-MM-01 form."""

    def __init__(self, report_month: str):
        super().__init__(
            code="INVALID_REPORT_MONTH",
            message="Report month must be YYYY-MM",
            details={"provided": report_month}
        )
