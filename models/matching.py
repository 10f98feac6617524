"""
Matching schemas: single resolutions and batch import results.
"""

from enum import Enum
from typing import Optional
from pydantic import Field

from models.base import CamelSchema
from models.product import ProductCatalogEntry


class MatchType(str, Enum):
    """How a title was resolved."""
    LEARNED = "learned"  # Exact hit in the channel's learned mappings
    EXACT = "exact"      # Normalized names identical
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"        # Unresolved


class MatchResult(CamelSchema):
    """Outcome of resolving one channel title. Never persisted."""

    query: str = Field(..., description="Original raw title")
    product_id: Optional[str] = Field(None, description="Resolved product id")
    matched_entry: Optional[ProductCatalogEntry] = Field(
        None, description="Best catalog entry, absent when unresolved"
    )
    score: float = Field(..., ge=0, le=1, description="Similarity rating")
    resolved: bool
    match_type: MatchType = MatchType.NONE


class SaleRow(CamelSchema):
    """One channel sales row: title plus quantity sold."""

    title: Optional[str] = None
    quantity: int = 0


class BatchRowResult(CamelSchema):
    """Resolution of one distinct title in a batch, with its summed quantity."""

    title: str
    quantity: int
    row_count: int = Field(..., description="Source rows aggregated under this title")
    match: MatchResult


class DuplicateGroup(CamelSchema):
    """Several distinct titles that resolved to the same product."""

    product_id: str
    product_name: Optional[str] = None
    count: int
    titles: list[str]
    quantities: list[int]
    total_quantity: int


class BlankTitleInfo(CamelSchema):
    """Rows with a quantity but no title."""

    count: int = 0
    quantity: int = 0


class BatchSummary(CamelSchema):
    """Counts for a resolved batch."""

    total_rows: int
    processed_rows: int
    distinct_titles: int
    matched_count: int
    unmatched_count: int
    duplicate_group_count: int
    total_quantity: int
    matched_quantity: int
    unmatched_quantity: int
    blank_title_info: BlankTitleInfo


class BatchResolveRequest(CamelSchema):
    """
    Batch import body.

    When catalog is omitted the live product catalog is read.
    """

    rows: list[SaleRow]
    catalog: Optional[list[dict]] = None


class BatchResolveResponse(CamelSchema):
    """Batch import result."""

    channel: str
    results: list[BatchRowResult]
    unresolved: list[BatchRowResult]
    duplicates: list[DuplicateGroup]
    summary: BatchSummary
