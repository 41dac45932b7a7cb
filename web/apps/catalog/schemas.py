"""Pydantic schemas for the product catalogue."""

import re
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

SKU_RE = re.compile(r"^[A-Z0-9_-]{3,64}$")
SORT_FIELDS = {"price", "-price", "name", "-name", "created_at", "-created_at", "stock", "-stock"}


class ProductIn(BaseModel):
    """Payload for creating a product.

    The SKU is upper-cased and must match ``[A-Z0-9_-]{3,64}``.
    """

    name: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    compare_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    sku: str
    category: str = Field(min_length=1, max_length=100)
    stock: int = Field(ge=0)
    tags: list[str] = []
    is_active: bool = True
    is_featured: bool = False

    @field_validator("sku")
    @classmethod
    def validate_sku(cls, v: str) -> str:
        v2 = v.strip().upper()
        if not SKU_RE.match(v2):
            raise ValueError("Invalid SKU format")
        return v2

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, v: list[str]) -> list[str]:
        return [t.strip() for t in v if t.strip()]


class ProductUpdate(BaseModel):
    """Partial update: only the fields sent are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1)
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    compare_price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    category: str | None = Field(default=None, min_length=1, max_length=100)
    stock: int | None = Field(default=None, ge=0)
    tags: list[str] | None = None
    is_active: bool | None = None
    is_featured: bool | None = None


class ProductQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort: str = "-created_at"
    category: str | None = None
    search: str | None = None
    min_price: Decimal | None = Field(default=None, ge=0)
    max_price: Decimal | None = Field(default=None, ge=0)

    @field_validator("sort")
    @classmethod
    def validate_sort(cls, v: str) -> str:
        if v not in SORT_FIELDS:
            raise ValueError(f"Unsupported sort field; use one of {sorted(SORT_FIELDS)}")
        return v


class RatingIn(BaseModel):
    rating: int = Field(ge=1, le=5)
    review: str = Field(min_length=1)


class ProductReadDTO(BaseModel):
    id: UUID
    name: str
    description: str
    price: Decimal
    compare_price: Decimal | None = None
    sku: str
    category: str
    tags: list[str]
    vendor_id: int
    stock: int
    is_active: bool
    is_featured: bool
    average_rating: float | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, product, average_rating: float | None = None) -> "ProductReadDTO":
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            compare_price=product.compare_price,
            sku=product.sku,
            category=product.category,
            tags=product.tags or [],
            vendor_id=product.vendor_id,
            stock=product.stock,
            is_active=product.is_active,
            is_featured=product.is_featured,
            average_rating=average_rating,
            created_at=product.created_at,
        )
