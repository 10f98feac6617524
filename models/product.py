"""
Product catalog schemas.

The catalog is read-only here: products are managed elsewhere in the
dashboard and only their id and display name matter for matching.
"""

from pydantic import ConfigDict, Field
from typing import Optional

from models.base import CamelSchema


class ProductCatalogEntry(CamelSchema):
    """Canonical product used as a matching target."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(..., description="Product id (primary key of products)")
    name: str = Field(..., description="Display name matched against channel titles")
    series: Optional[str] = Field(None, description="Product series")
    price: Optional[float] = Field(None, description="List price")


class ProductCatalogResponse(CamelSchema):
    """Catalog listing."""

    data: list[ProductCatalogEntry]
    total: int
