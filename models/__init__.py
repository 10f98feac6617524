"""
Pydantic models for validation and serialization.
"""

from models.base import (
    CamelSchema,
    PaginatedResponse
)
from models.channel import (
    Channel,
    ChannelConfig,
    CHANNEL_CONFIGS,
)
from models.product import (
    ProductCatalogEntry,
    ProductCatalogResponse,
)
from models.mapping import (
    ChannelMapping,
    LearnRequest,
    LearnResponse,
    ResetResponse,
    MappingListResponse,
)
from models.matching import (
    MatchType,
    MatchResult,
    SaleRow,
    BatchRowResult,
    DuplicateGroup,
    BlankTitleInfo,
    BatchSummary,
    BatchResolveRequest,
    BatchResolveResponse,
)
from models.web_sales import (
    ConfirmItem,
    ConfirmRequest,
    ConfirmResponse,
    VerifyRequest,
    VerificationRow,
    VerifyResponse,
)

__all__ = [
    # Base
    "CamelSchema",
    "PaginatedResponse",

    # Channel
    "Channel",
    "ChannelConfig",
    "CHANNEL_CONFIGS",

    # Product
    "ProductCatalogEntry",
    "ProductCatalogResponse",

    # Mapping
    "ChannelMapping",
    "LearnRequest",
    "LearnResponse",
    "ResetResponse",
    "MappingListResponse",

    # Matching
    "MatchType",
    "MatchResult",
    "SaleRow",
    "BatchRowResult",
    "DuplicateGroup",
    "BlankTitleInfo",
    "BatchSummary",
    "BatchResolveRequest",
    "BatchResolveResponse",

    # Web sales
    "ConfirmItem",
    "ConfirmRequest",
    "ConfirmResponse",
    "VerifyRequest",
    "VerificationRow",
    "VerifyResponse",
]
