"""
Web sales summary schemas.

web_sales_summary holds one row per (product_id, report_month) with a count
column per channel. Confirming an import overwrites that channel's column.
"""

from typing import Optional
from pydantic import Field

from models.base import CamelSchema
from models.matching import SaleRow


class ConfirmItem(CamelSchema):
    """Resolved quantity for a product, as confirmed by the operator."""

    product_id: str
    quantity: int = Field(..., description="Units sold in the month")


class ConfirmRequest(CamelSchema):
    """Confirm import body."""

    report_month: str = Field(..., description="YYYY-MM", examples=["2025-06"])
    items: list[ConfirmItem]


class ConfirmResponse(CamelSchema):
    """Confirm import result."""

    success: bool
    report_month: str
    updated_records: int
    total_quantity: int
    skipped_items: int = 0


class VerifyRequest(CamelSchema):
    """Verification body: the channel report rows for one month."""

    report_month: str
    rows: list[SaleRow]


class VerificationRow(CamelSchema):
    """Report total vs stored total for one product."""

    product_id: str
    product_name: str
    series: Optional[str] = None
    csv_count: int
    db_count: int
    is_match: bool


class VerifyResponse(CamelSchema):
    """Verification result."""

    success: bool
    report_month: str
    results: list[VerificationRow]
    mismatch_count: int
    unresolved_titles: list[str]
