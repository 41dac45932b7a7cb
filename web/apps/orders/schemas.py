"""Pydantic schemas for orders.

Request DTOs validate what the client sends; ``OrderReadDTO`` shapes what the
API returns. Totals are never accepted from the client.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from apps.accounts.schemas import AddressIn

from .domain import Order, OrderStatus, PaymentMethod


class OrderItemIn(BaseModel):
    """One requested line.

    Attributes:
        product: Product id.
        quantity: Units requested, at least 1.
    """

    product: UUID
    quantity: int = Field(gt=0)


class CreateOrderDTO(BaseModel):
    """Schema for creating an order.

    ``items`` may be empty here: the workflow rejects empty orders itself so
    the caller gets the ``EMPTY_ORDER`` code.
    """

    items: list[OrderItemIn]
    shipping_address: AddressIn
    payment_method: PaymentMethod
    coupon_code: str | None = Field(default=None, max_length=64)
    notes: str = Field(default="", max_length=2000)

    @field_validator("coupon_code")
    @classmethod
    def normalize_coupon(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v2 = v.strip().upper()
        return v2 or None


class StatusUpdateDTO(BaseModel):
    status: OrderStatus
    tracking_number: str | None = Field(default=None, max_length=128)
    estimated_delivery_date: date | None = None


class LineItemOut(BaseModel):
    product: UUID
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderReadDTO(BaseModel):
    id: UUID
    user_id: int
    items: list[LineItemOut]
    subtotal: Decimal
    discount_amount: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    shipping_address: dict
    payment_method: str
    payment_status: str
    order_status: str
    payment_intent_id: str | None = None
    coupon_code: str | None = None
    tracking_number: str | None = None
    estimated_delivery_date: date | None = None
    actual_delivery_date: datetime | None = None
    refund: dict | None = None
    notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderReadDTO":
        return cls(
            id=order.id,
            user_id=order.user_id,
            items=[
                LineItemOut(
                    product=li.product_id,
                    quantity=li.quantity,
                    unit_price=li.unit_price,
                    line_total=li.line_total,
                )
                for li in order.items
            ],
            subtotal=order.totals.subtotal,
            discount_amount=order.totals.discount_amount,
            shipping_cost=order.totals.shipping_cost,
            tax_amount=order.totals.tax_amount,
            total_amount=order.totals.grand_total,
            shipping_address=dict(order.shipping_address),
            payment_method=order.payment_method.value,
            payment_status=order.payment_status.value,
            order_status=order.status.value,
            payment_intent_id=order.payment_intent_id,
            coupon_code=order.coupon_code,
            tracking_number=order.tracking_number,
            estimated_delivery_date=order.estimated_delivery_date,
            actual_delivery_date=order.actual_delivery_date,
            refund=dict(order.refund) if order.refund else None,
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
