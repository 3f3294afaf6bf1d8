"""Schemas for products and their images."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field, field_serializer

from storefront.schemas.common import CamelModel


class ProductImageOut(CamelModel):
    id: int
    image_url: str
    image_filename: str
    is_primary: bool
    sort_order: int


class ProductOut(CamelModel):
    id: int
    name: str
    description: str | None = None
    price: Decimal
    stock: int
    category: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    images: list[ProductImageOut] = Field(default_factory=list)

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> str:
        """Always two decimals, as a string (e.g. "199.99", "150.00")."""
        return f"{Decimal(price).quantize(Decimal('0.01')):f}"


class ProductListData(CamelModel):
    products: list[ProductOut]
    total_pages: int
    current_page: int
    total_products: int
    filters: dict[str, str] | None = None
    search_term: str | None = None
