"""Repository layer for persisting orders.

Maps domain ``Order`` objects to ``OrderModel``/``OrderLineItemModel`` rows
and back, so the domain layer never sees Django ORM types.
"""

from decimal import Decimal
from typing import Iterable

from django.db import transaction
from django.utils import timezone

from gateway.errors import ValidationError

from .domain import LineItem, Order, OrderStatus, PaymentMethod, PaymentStatus
from .models import MONEY_PLACES, OrderLineItemModel, OrderModel
from .pricing import Totals

_MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_PLACES)


def _check_storable(totals: Totals) -> None:
    """Refuse totals the money columns would have to round."""
    for name, value in vars(totals).items():
        if value != value.quantize(_MONEY_QUANTUM):
            raise ValidationError(f"{name} has more than {MONEY_PLACES} decimal places")


def to_domain(obj: OrderModel) -> Order:
    return Order(
        id=obj.id,
        user_id=obj.user_id,
        items=[
            LineItem(product_id=li.product_id, quantity=li.quantity, unit_price=li.unit_price)
            for li in obj.items.all()
        ],
        totals=Totals(
            subtotal=obj.subtotal,
            discount_amount=obj.discount_amount,
            shipping_cost=obj.shipping_cost,
            tax_amount=obj.tax_amount,
            grand_total=obj.total_amount,
        ),
        payment_method=PaymentMethod(obj.payment_method),
        shipping_address=obj.shipping_address or {},
        status=OrderStatus(obj.order_status),
        payment_status=PaymentStatus(obj.payment_status),
        coupon_code=obj.coupon_code,
        payment_intent_id=obj.payment_intent_id,
        tracking_number=obj.tracking_number,
        estimated_delivery_date=obj.estimated_delivery_date,
        actual_delivery_date=obj.actual_delivery_date,
        refund=obj.refund_details,
        notes=obj.notes,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


class OrderRepository:
    """``OrderRepositoryPort`` implementation on the Django ORM."""

    def create(self, order: Order) -> Order:
        """Insert the order and its lines in one transaction.

        Raises:
            ValidationError: If a total cannot be stored without rounding.
        """
        _check_storable(order.totals)
        with transaction.atomic():
            obj = OrderModel.objects.create(
                id=order.id,
                user_id=order.user_id,
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
                notes=order.notes,
            )
            OrderLineItemModel.objects.bulk_create(
                OrderLineItemModel(
                    order=obj,
                    position=pos,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for pos, line in enumerate(order.items)
            )
        return self.get(obj.id)

    def get(self, order_id) -> Order | None:
        obj = OrderModel.objects.prefetch_related("items").filter(pk=order_id).first()
        return to_domain(obj) if obj else None

    def list_for_user(self, user_id) -> list[Order]:
        qs = OrderModel.objects.prefetch_related("items").filter(user_id=user_id).order_by("-created_at")
        return [to_domain(o) for o in qs]

    def list_for_products(self, product_ids: Iterable) -> list[Order]:
        qs = (
            OrderModel.objects.prefetch_related("items")
            .filter(items__product_id__in=list(product_ids))
            .distinct()
            .order_by("-created_at")
        )
        return [to_domain(o) for o in qs]

    def transition(self, order_id, from_statuses: Iterable[OrderStatus], to_status: OrderStatus, **changes) -> bool:
        """Conditional UPDATE on ``order_status``; see ``OrderRepositoryPort``."""
        allowed = [OrderStatus(s).value for s in from_statuses]
        updated = (
            OrderModel.objects.filter(pk=order_id, order_status__in=allowed)
            .update(order_status=OrderStatus(to_status).value, updated_at=timezone.now(), **changes)
        )
        return updated == 1
