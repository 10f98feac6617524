"""
Web sales service: writes confirmed channel imports into web_sales_summary
and verifies channel reports against what was stored.
"""

from collections import defaultdict
from datetime import date, datetime
from typing import Optional, Sequence
import structlog

from config import get_supabase_client
from models.channel import Channel
from models.product import ProductCatalogEntry
from models.matching import SaleRow
from models.web_sales import (
    ConfirmItem,
    ConfirmResponse,
    VerificationRow,
    VerifyResponse,
)
from services.match_service import MatchService, get_match_service
from exceptions import DatabaseError, InvalidReportMonthError

logger = structlog.get_logger(__name__)


def normalize_report_month(report_month: str) -> str:
    """
    Normalize a report month to the stored YYYY-MM-01 form.

    Accepts "2025-06" and "2025-06-01" (any day collapses to the 1st).

    Raises:
        InvalidReportMonthError: If the value is not a valid month
    """
    value = (report_month or "").strip()
    for fmt in ("%Y-%m", "%Y-%m-%d"):
        try:
            parsed = datetime.strptime(value, fmt)
            return parsed.date().replace(day=1).isoformat()
        except ValueError:
            continue
    raise InvalidReportMonthError(report_month)


class WebSalesService:
    """
    Monthly per-channel sales counts.

    Each channel owns one count column in web_sales_summary; confirming an
    import overwrites that column and leaves the other channels' counts alone.
    """

    def __init__(self, db=None, match_service: Optional[MatchService] = None):
        self.db = db if db is not None else get_supabase_client()
        self.match_service = match_service or get_match_service()
        self.table = "web_sales_summary"

    # ===================
    # CONFIRM
    # ===================

    def confirm(
        self,
        channel: Channel,
        report_month: str,
        items: Sequence[ConfirmItem],
    ) -> ConfirmResponse:
        """
        Store confirmed quantities for a month.

        Quantities are summed per product, then written in one upsert keyed
        on (product_id, report_month).

        Args:
            channel: Channel the import came from
            report_month: YYYY-MM
            items: Resolved product quantities

        Returns:
            ConfirmResponse with the number of product rows written

        Raises:
            InvalidReportMonthError: If report_month is malformed
            DatabaseError: If the upsert fails
        """
        month = normalize_report_month(report_month)
        column = channel.config.sales_column

        totals: dict[str, int] = defaultdict(int)
        skipped = 0
        for item in items:
            if not item.product_id or item.quantity <= 0:
                skipped += 1
                continue
            totals[item.product_id] += item.quantity

        logger.info(
            "confirming_web_sales",
            channel=channel.value,
            report_month=month,
            products=len(totals),
            skipped=skipped
        )

        if not totals:
            return ConfirmResponse(
                success=True,
                report_month=month,
                updated_records=0,
                total_quantity=0,
                skipped_items=skipped,
            )

        today = date.today().isoformat()
        rows = [
            {
                "product_id": product_id,
                "report_month": month,
                column: quantity,
                "report_date": today,
            }
            for product_id, quantity in totals.items()
        ]

        try:
            (
                self.db.table(self.table)
                .upsert(rows, on_conflict="product_id,report_month")
                .execute()
            )
        except Exception as e:
            logger.error(
                "confirm_web_sales_failed",
                channel=channel.value,
                report_month=month,
                error=str(e)
            )
            raise DatabaseError("upsert", str(e), details={"channel": channel.value})

        total_quantity = sum(totals.values())

        logger.info(
            "web_sales_confirmed",
            channel=channel.value,
            report_month=month,
            updated_records=len(rows),
            total_quantity=total_quantity
        )

        return ConfirmResponse(
            success=True,
            report_month=month,
            updated_records=len(rows),
            total_quantity=total_quantity,
            skipped_items=skipped,
        )

    # ===================
    # VERIFY
    # ===================

    def get_month_counts(self, channel: Channel, report_month: str) -> dict[str, int]:
        """
        Stored counts for one channel and month.

        Returns:
            Dict of product_id -> count (missing counts read as 0)
        """
        month = normalize_report_month(report_month)
        column = channel.config.sales_column

        try:
            result = (
                self.db.table(self.table)
                .select(f"product_id, {column}")
                .eq("report_month", month)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_month_counts_failed",
                channel=channel.value,
                report_month=month,
                error=str(e)
            )
            raise DatabaseError("select", str(e), details={"channel": channel.value})

        return {
            str(row["product_id"]): int(row.get(column) or 0)
            for row in result.data
        }

    def verify(
        self,
        channel: Channel,
        report_month: str,
        rows: Sequence[SaleRow],
        catalog: Sequence[ProductCatalogEntry],
    ) -> VerifyResponse:
        """
        Compare a channel report with the stored month.

        The report is resolved the same way an import is; titles that do not
        resolve are listed but cannot be compared.

        Args:
            channel: Channel the report came from
            report_month: YYYY-MM
            rows: Report rows
            catalog: Candidate products

        Returns:
            VerifyResponse with one row per product seen on either side
        """
        month = normalize_report_month(report_month)
        batch = self.match_service.resolve_batch(channel, rows, catalog)

        csv_counts: dict[str, int] = defaultdict(int)
        for result in batch.results:
            if result.match.resolved and result.match.product_id:
                csv_counts[result.match.product_id] += result.quantity

        db_counts = self.get_month_counts(channel, month)
        by_id = {entry.id: entry for entry in catalog}

        verification = []
        for product_id in dict.fromkeys([*csv_counts, *db_counts]):
            entry = by_id.get(product_id)
            csv_count = csv_counts.get(product_id, 0)
            db_count = db_counts.get(product_id, 0)
            verification.append(VerificationRow(
                product_id=product_id,
                product_name=entry.name if entry else "Unknown product",
                series=entry.series if entry else None,
                csv_count=csv_count,
                db_count=db_count,
                is_match=csv_count == db_count,
            ))

        verification.sort(key=lambda r: (r.series or "", r.product_name))
        mismatches = sum(1 for r in verification if not r.is_match)

        logger.info(
            "web_sales_verified",
            channel=channel.value,
            report_month=month,
            products=len(verification),
            mismatches=mismatches
        )

        return VerifyResponse(
            success=True,
            report_month=month,
            results=verification,
            mismatch_count=mismatches,
            unresolved_titles=[r.title for r in batch.unresolved],
        )


# Singleton instance for convenience
_web_sales_service: Optional[WebSalesService] = None


def get_web_sales_service() -> WebSalesService:
    """Get or create WebSalesService instance."""
    global _web_sales_service
    if _web_sales_service is None:
        _web_sales_service = WebSalesService()
    return _web_sales_service
