"""
Catalog service: read access to the canonical product table.

Matching only ever reads products; writes happen in the product
management screens of the dashboard.
"""

from typing import Optional
import structlog

from config import get_supabase_client, settings
from config.database import DatabaseSession
from models.product import ProductCatalogEntry
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

PAGE_SIZE = 1000  # PostgREST default max rows per request


class CatalogService:
    """
    Product catalog reader.

    Returns the candidate set the similarity scorer ranks against.
    """

    def __init__(self, db=None, max_size: Optional[int] = None):
        self.db = db if db is not None else get_supabase_client()
        self.table = "products"
        self.max_size = max_size or settings.catalog_max_size

    def get_catalog(self) -> list[ProductCatalogEntry]:
        """
        Load matchable products.

        Entries without a usable name are dropped. The result is capped at
        max_size entries to bound similarity scans.

        Returns:
            List of ProductCatalogEntry ordered by name
        """
        logger.info("loading_catalog", max_size=self.max_size)

        rows: list[dict] = []
        try:
            with DatabaseSession("load_catalog", client=self.db) as client:
                offset = 0
                while len(rows) < self.max_size:
                    end = min(offset + PAGE_SIZE, self.max_size) - 1
                    result = (
                        client.table(self.table)
                        .select("id, name, series, price")
                        .order("name")
                        .range(offset, end)
                        .execute()
                    )
                    page = result.data or []
                    rows.extend(page)
                    if len(page) < end - offset + 1:
                        break
                    offset = end + 1

        except Exception as e:
            logger.error("load_catalog_failed", error=str(e))
            raise DatabaseError("select", str(e))

        catalog = []
        skipped = 0
        for row in rows:
            name = row.get("name")
            if not isinstance(name, str) or not name.strip():
                skipped += 1
                continue
            catalog.append(ProductCatalogEntry(
                id=str(row["id"]),
                name=name,
                series=row.get("series"),
                price=row.get("price"),
            ))

        logger.info(
            "catalog_loaded",
            count=len(catalog),
            skipped=skipped,
            capped=len(rows) >= self.max_size
        )

        return catalog


# Singleton instance for convenience
_catalog_service: Optional[CatalogService] = None


def get_catalog_service() -> CatalogService:
    """Get or create CatalogService instance."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
