"""
Match service: resolves channel titles to catalog products.

Resolution order:
    1. Learned mapping for the exact title (score 1.0)
    2. Best normalized-similarity match above the threshold
    3. Unresolved, left for the operator

Resolving never writes a mapping. Learning is a separate, explicit call
to MappingService.upsert().
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union
import structlog
from pydantic import ValidationError as PydanticValidationError

from config import settings
from models.channel import Channel
from models.product import ProductCatalogEntry
from models.matching import (
    MatchType,
    MatchResult,
    SaleRow,
    BatchRowResult,
    DuplicateGroup,
    BlankTitleInfo,
    BatchSummary,
    BatchResolveResponse,
)
from services.mapping_service import MappingService, get_mapping_service
from utils.similarity import score_best
from exceptions import (
    MatchTitleRequiredError,
    CatalogEntryInvalidError,
    CatalogTooLargeError,
)

logger = structlog.get_logger(__name__)

CatalogInput = Sequence[Union[ProductCatalogEntry, dict[str, Any]]]


@dataclass
class _TitleBucket:
    """Quantities collected for one distinct title within a batch."""
    title: str
    quantity: int = 0
    row_count: int = 0


@dataclass
class _PreparedRows:
    buckets: list[_TitleBucket] = field(default_factory=list)
    blank_titles: BlankTitleInfo = field(default_factory=BlankTitleInfo)
    total_rows: int = 0
    processed_rows: int = 0


class MatchService:
    """
    Channel title resolver.

    Mapping stores are looked up per channel through mapping_store_factory,
    which defaults to the shared per-channel MappingService instances.
    """

    def __init__(
        self,
        mapping_store_factory=None,
        threshold: Optional[float] = None,
        high_threshold: Optional[float] = None,
        medium_threshold: Optional[float] = None,
        max_catalog_size: Optional[int] = None,
    ):
        self.mapping_store_factory = mapping_store_factory or get_mapping_service
        self.threshold = settings.match_threshold if threshold is None else threshold
        self.high_threshold = (
            settings.match_high_threshold if high_threshold is None else high_threshold
        )
        self.medium_threshold = (
            settings.match_medium_threshold if medium_threshold is None else medium_threshold
        )
        self.max_catalog_size = max_catalog_size or settings.catalog_max_size

    # ===================
    # SINGLE RESOLUTION
    # ===================

    def resolve(
        self,
        channel: Channel,
        raw_title: str,
        catalog: CatalogInput,
    ) -> MatchResult:
        """
        Resolve one channel title.

        Args:
            channel: Channel the title comes from
            raw_title: Title exactly as reported by the channel
            catalog: Candidate products (entries or dicts with id and name)

        Returns:
            MatchResult (resolved=False is a normal outcome)

        Raises:
            MatchTitleRequiredError: If raw_title is empty
            CatalogEntryInvalidError: If a catalog entry lacks id or name
            CatalogTooLargeError: If the catalog exceeds max_catalog_size
            StoreError: If the mapping lookup fails
        """
        if not raw_title or not raw_title.strip():
            raise MatchTitleRequiredError()

        entries = self._validate_catalog(catalog)
        store: MappingService = self.mapping_store_factory(channel)
        learned_product_id = store.lookup(raw_title)

        return self._resolve_one(channel, raw_title, entries, learned_product_id)

    # ===================
    # BATCH RESOLUTION
    # ===================

    def resolve_batch(
        self,
        channel: Channel,
        rows: Sequence[SaleRow],
        catalog: CatalogInput,
    ) -> BatchResolveResponse:
        """
        Resolve a channel import.

        Quantities are summed per distinct title first, so each title is
        resolved once. Rows with quantity <= 0 are skipped; rows with a
        quantity but no title are counted under blank_title_info.

        Args:
            channel: Channel the rows come from
            rows: Sales rows (title, quantity)
            catalog: Candidate products

        Returns:
            BatchResolveResponse with per-title results, unresolved titles,
            duplicate groups and summary counts
        """
        entries = self._validate_catalog(catalog)
        prepared = self._prepare_rows(rows)

        logger.info(
            "resolving_batch",
            channel=channel.value,
            rows=prepared.total_rows,
            distinct_titles=len(prepared.buckets),
            catalog_size=len(entries)
        )

        learned: dict[str, str] = {}
        if prepared.buckets:
            learned = self.mapping_store_factory(channel).load_all()

        results: list[BatchRowResult] = []
        for bucket in prepared.buckets:
            match = self._resolve_one(
                channel,
                bucket.title,
                entries,
                learned.get(bucket.title)
            )
            results.append(BatchRowResult(
                title=bucket.title,
                quantity=bucket.quantity,
                row_count=bucket.row_count,
                match=match,
            ))

        unresolved = [r for r in results if not r.match.resolved]
        duplicates = self.detect_duplicates(results)

        matched_quantity = sum(r.quantity for r in results if r.match.resolved)
        unmatched_quantity = sum(r.quantity for r in unresolved)

        summary = BatchSummary(
            total_rows=prepared.total_rows,
            processed_rows=prepared.processed_rows,
            distinct_titles=len(results),
            matched_count=len(results) - len(unresolved),
            unmatched_count=len(unresolved),
            duplicate_group_count=len(duplicates),
            total_quantity=matched_quantity + unmatched_quantity,
            matched_quantity=matched_quantity,
            unmatched_quantity=unmatched_quantity,
            blank_title_info=prepared.blank_titles,
        )

        logger.info(
            "batch_resolved",
            channel=channel.value,
            matched=summary.matched_count,
            unmatched=summary.unmatched_count,
            duplicate_groups=summary.duplicate_group_count,
            blank_titles=prepared.blank_titles.count
        )

        return BatchResolveResponse(
            channel=channel.value,
            results=results,
            unresolved=unresolved,
            duplicates=duplicates,
            summary=summary,
        )

    def detect_duplicates(self, results: Sequence[BatchRowResult]) -> list[DuplicateGroup]:
        """
        Group distinct titles that resolved to the same product.

        Args:
            results: Per-title batch results

        Returns:
            One DuplicateGroup per product reached by two or more titles,
            in order of first appearance
        """
        by_product: dict[str, list[BatchRowResult]] = defaultdict(list)
        for result in results:
            if result.match.resolved and result.match.product_id:
                by_product[result.match.product_id].append(result)

        groups = []
        for product_id, members in by_product.items():
            titles = list(dict.fromkeys(m.title for m in members))
            if len(titles) < 2:
                continue
            entry = next(
                (m.match.matched_entry for m in members if m.match.matched_entry),
                None
            )
            groups.append(DuplicateGroup(
                product_id=product_id,
                product_name=entry.name if entry else None,
                count=len(members),
                titles=titles,
                quantities=[m.quantity for m in members],
                total_quantity=sum(m.quantity for m in members),
            ))

        return groups

    # ===================
    # HELPERS
    # ===================

    def classify(self, rating: float) -> MatchType:
        """Band a similarity rating that cleared the threshold."""
        if rating >= 1.0:
            return MatchType.EXACT
        if rating >= self.high_threshold:
            return MatchType.HIGH
        if rating >= self.medium_threshold:
            return MatchType.MEDIUM
        return MatchType.LOW

    def _resolve_one(
        self,
        channel: Channel,
        raw_title: str,
        entries: list[ProductCatalogEntry],
        learned_product_id: Optional[str],
    ) -> MatchResult:
        if learned_product_id is not None:
            entry = next((e for e in entries if e.id == learned_product_id), None)
            if entry is None:
                logger.warning(
                    "learned_product_not_in_catalog",
                    channel=channel.value,
                    title=raw_title,
                    product_id=learned_product_id
                )
            return MatchResult(
                query=raw_title,
                product_id=learned_product_id,
                matched_entry=entry,
                score=1.0,
                resolved=True,
                match_type=MatchType.LEARNED,
            )

        best = score_best(raw_title, entries)

        if best is None or best.rating < self.threshold:
            logger.debug(
                "title_unresolved",
                channel=channel.value,
                title=raw_title,
                best_score=best.rating if best else 0.0
            )
            return MatchResult(
                query=raw_title,
                score=best.rating if best else 0.0,
                resolved=False,
                match_type=MatchType.NONE,
            )

        return MatchResult(
            query=raw_title,
            product_id=best.entry.id,
            matched_entry=best.entry,
            score=best.rating,
            resolved=True,
            match_type=self.classify(best.rating),
        )

    def _validate_catalog(self, catalog: CatalogInput) -> list[ProductCatalogEntry]:
        """Coerce catalog input to entries, rejecting malformed or oversized ones."""
        catalog = catalog or []
        if len(catalog) > self.max_catalog_size:
            raise CatalogTooLargeError(len(catalog), self.max_catalog_size)

        entries = []
        for index, item in enumerate(catalog):
            if isinstance(item, ProductCatalogEntry):
                entries.append(item)
                continue
            try:
                entries.append(ProductCatalogEntry.model_validate(item))
            except PydanticValidationError as e:
                raise CatalogEntryInvalidError(
                    index,
                    [
                        {"field": ".".join(str(p) for p in err["loc"]), "error": err["msg"]}
                        for err in e.errors()
                    ]
                )
        return entries

    def _prepare_rows(self, rows: Sequence[SaleRow]) -> _PreparedRows:
        """Sum quantities per distinct title, setting blank titles aside."""
        prepared = _PreparedRows(total_rows=len(rows))
        buckets: dict[str, _TitleBucket] = {}

        for row in rows:
            if row.quantity <= 0:
                continue
            prepared.processed_rows += 1

            if not row.title or not row.title.strip():
                prepared.blank_titles.count += 1
                prepared.blank_titles.quantity += row.quantity
                continue

            bucket = buckets.get(row.title)
            if bucket is None:
                bucket = _TitleBucket(title=row.title)
                buckets[row.title] = bucket
            bucket.quantity += row.quantity
            bucket.row_count += 1

        prepared.buckets = list(buckets.values())
        return prepared


# Singleton instance for convenience
_match_service: Optional[MatchService] = None


def get_match_service() -> MatchService:
    """Get or create MatchService instance."""
    global _match_service
    if _match_service is None:
        _match_service = MatchService()
    return _match_service
