"""
Mapping service: learned channel title -> product mappings.

One instance per channel. The title column is unique in every mapping
table, so upserts keyed on it keep at most one row per title and the last
write wins when the same title is confirmed concurrently.

reset_all() is an operator action meant to run between import batches.
Running it while a batch is learning may leave rows written after the
delete; that never breaks the one-row-per-title invariant.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client
from models.channel import Channel
from models.mapping import ChannelMapping
from exceptions import (
    StoreError,
    MappingTitleRequiredError,
    MappingProductRequiredError,
)

logger = structlog.get_logger(__name__)

PAGE_SIZE = 1000  # PostgREST default max rows per request


class MappingService:
    """
    Per-channel mapping store.

    Handles learning writes, exact-title lookups and bulk resets.
    Datastore failures surface as StoreError; nothing is retried here.
    """

    def __init__(self, channel: Channel, db=None):
        self.channel = channel
        self.db = db if db is not None else get_supabase_client()
        self.table = channel.config.mapping_table
        self.title_column = channel.config.title_column

    # ===================
    # READ OPERATIONS
    # ===================

    def lookup(self, channel_title: str) -> Optional[str]:
        """
        Exact-string lookup of a learned title.

        No normalization is applied: only titles confirmed verbatim hit.

        Args:
            channel_title: Raw title

        Returns:
            Product id, or None when the title was never learned
        """
        if not channel_title:
            return None

        try:
            result = (
                self.db.table(self.table)
                .select("product_id")
                .eq(self.title_column, channel_title)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "mapping_lookup_failed",
                channel=self.channel.value,
                error=str(e)
            )
            raise StoreError(self.channel.value, "select", str(e))

        if not result.data:
            return None

        return result.data[0]["product_id"]

    def load_all(self) -> dict[str, str]:
        """
        Snapshot of every learned mapping for the channel.

        Used by batch resolution so a whole import costs one pass over the
        table instead of one lookup per row.

        Returns:
            Dict of channel title -> product id
        """
        mappings: dict[str, str] = {}
        offset = 0

        try:
            while True:
                result = (
                    self.db.table(self.table)
                    .select(f"{self.title_column}, product_id")
                    .order(self.title_column)
                    .range(offset, offset + PAGE_SIZE - 1)
                    .execute()
                )
                page = result.data or []
                for row in page:
                    title = row.get(self.title_column)
                    if title:
                        mappings[title] = row["product_id"]
                if len(page) < PAGE_SIZE:
                    break
                offset += PAGE_SIZE

        except Exception as e:
            logger.error(
                "mapping_load_failed",
                channel=self.channel.value,
                error=str(e)
            )
            raise StoreError(self.channel.value, "select", str(e))

        logger.debug(
            "mappings_loaded",
            channel=self.channel.value,
            count=len(mappings)
        )

        return mappings

    def list_mappings(
        self,
        page: int = 1,
        page_size: int = 50
    ) -> tuple[list[ChannelMapping], int]:
        """
        Learned mappings, most recently confirmed first.

        Args:
            page: Page number (1-indexed)
            page_size: Items per page

        Returns:
            Tuple of (mappings, total count)
        """
        offset = (page - 1) * page_size

        try:
            result = (
                self.db.table(self.table)
                .select(f"{self.title_column}, product_id, updated_at", count="exact")
                .order("updated_at", desc=True)
                .range(offset, offset + page_size - 1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "mapping_list_failed",
                channel=self.channel.value,
                error=str(e)
            )
            raise StoreError(self.channel.value, "select", str(e))

        mappings = [self._row_to_mapping(row) for row in result.data]
        return mappings, result.count or 0

    # ===================
    # WRITE OPERATIONS
    # ===================

    def upsert(self, channel_title: Optional[str], product_id: Optional[str]) -> ChannelMapping:
        """
        Learn (or re-learn) a title.

        Inserts a new mapping or replaces the product of an existing one,
        refreshing updated_at either way.

        Args:
            channel_title: Raw title exactly as the channel reports it
            product_id: Product to map it to

        Returns:
            The stored ChannelMapping

        Raises:
            MappingTitleRequiredError: If the title is empty or missing
            MappingProductRequiredError: If the product id is empty or missing
            StoreError: If the datastore write fails
        """
        if not channel_title or not channel_title.strip():
            raise MappingTitleRequiredError(self.channel.value)
        if not product_id or not str(product_id).strip():
            raise MappingProductRequiredError(self.channel.value)

        logger.info(
            "upserting_mapping",
            channel=self.channel.value,
            title=channel_title,
            product_id=product_id
        )

        row = {
            self.title_column: channel_title,
            "product_id": str(product_id),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            result = (
                self.db.table(self.table)
                .upsert(row, on_conflict=self.title_column)
                .execute()
            )
        except Exception as e:
            logger.error(
                "mapping_upsert_failed",
                channel=self.channel.value,
                title=channel_title,
                error=str(e)
            )
            raise StoreError(self.channel.value, "upsert", str(e))

        stored = result.data[0] if result.data else row

        logger.info(
            "mapping_upserted",
            channel=self.channel.value,
            title=channel_title,
            product_id=product_id
        )

        return self._row_to_mapping(stored)

    def reset_all(self) -> int:
        """
        Delete every learned mapping for the channel.

        Runs as a single DELETE statement, so it either removes all rows or
        none.

        Returns:
            Number of rows deleted

        Raises:
            StoreError: If the datastore delete fails
        """
        logger.info("resetting_mappings", channel=self.channel.value)

        try:
            # PostgREST refuses unfiltered deletes; every row has a title
            result = (
                self.db.table(self.table)
                .delete(count="exact")
                .not_.is_(self.title_column, "null")
                .execute()
            )
        except Exception as e:
            logger.error(
                "mapping_reset_failed",
                channel=self.channel.value,
                error=str(e)
            )
            raise StoreError(self.channel.value, "delete", str(e))

        deleted = result.count if result.count is not None else len(result.data or [])

        logger.info(
            "mappings_reset",
            channel=self.channel.value,
            deleted_count=deleted
        )

        return deleted

    # ===================
    # UTILITY METHODS
    # ===================

    def _row_to_mapping(self, row: dict) -> ChannelMapping:
        """Convert database row to ChannelMapping."""
        return ChannelMapping(
            channel_title=row[self.title_column],
            product_id=str(row["product_id"]),
            updated_at=row.get("updated_at"),
        )


# One instance per channel
_mapping_services: dict[Channel, MappingService] = {}


def get_mapping_service(channel: Channel) -> MappingService:
    """Get or create the MappingService for a channel."""
    if channel not in _mapping_services:
        _mapping_services[channel] = MappingService(channel)
    return _mapping_services[channel]
