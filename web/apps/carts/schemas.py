"""Pydantic schemas for the shopping cart."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class CartItemIn(BaseModel):
    product: UUID
    quantity: int = Field(ge=1)


class CartQuantityIn(BaseModel):
    quantity: int = Field(ge=1)


class CartProductOut(BaseModel):
    id: UUID
    name: str
    price: Decimal
    stock: int


class CartLineOut(BaseModel):
    product: CartProductOut
    quantity: int
    line_total: Decimal


class CartOut(BaseModel):
    """Cart contents. ``total`` uses current product prices, not a snapshot."""

    items: list[CartLineOut]
    total: Decimal
