"""Domain models, ports and services for orders.

This module holds the order dataclasses, the protocols (ports) for the
collaborators the order workflow needs (inventory, payments, order
storage), and the two services built on them:

- ``OrderService`` places orders: reserve stock item by item, price the
  order, open a payment intent when the payment method needs one, persist.
  Any failure after the first reservation gives back exactly the stock
  taken so far (see ``ReservationBatch``).
- ``OrderLifecycle`` moves persisted orders through their statuses and
  restores stock on cancellation.

Nothing here talks to Django or HTTP directly.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, List, Mapping, Protocol

from gateway.errors import EmptyOrder, Forbidden, InvalidTransition, NotFound, ValidationError

from .pricing import PricingPolicies, Totals, price_order, to_minor_units

logger = logging.getLogger(__name__)


# ---- Enums ----
class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CARD = "card"
    PAYPAL = "paypal"
    GATEWAY = "gateway"

    @property
    def requires_intent(self) -> bool:
        """True when the payment is hosted by the gateway and needs an intent."""
        return self is PaymentMethod.GATEWAY


CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})
TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class OrderItem:
    """A requested line: which product and how many units."""

    product_id: Any
    quantity: int

    def __post_init__(self):
        if self.quantity < 1:
            raise ValidationError("Quantity must be at least 1")


@dataclass(frozen=True)
class LineItem:
    """An order line with the unit price captured when stock was reserved.

    The price never changes afterwards, whatever happens to the product.
    """

    product_id: Any
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class Order:
    """Container for order data.

    ``totals`` is computed by the pricing engine, never taken from the
    client.
    """

    id: uuid.UUID
    user_id: Any
    items: List[LineItem]
    totals: Totals
    payment_method: PaymentMethod
    shipping_address: Mapping[str, Any] = field(default_factory=dict)
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    coupon_code: str | None = None
    payment_intent_id: str | None = None
    tracking_number: str | None = None
    estimated_delivery_date: date | None = None
    actual_delivery_date: datetime | None = None
    refund: Mapping[str, Any] | None = None
    notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class PaymentIntent:
    intent_id: str
    client_secret: str


@dataclass(frozen=True)
class PlacedOrder:
    """Result of a successful placement.

    ``client_secret`` is only set for gateway-hosted payments; the caller
    needs it to finish the payment with the gateway.
    """

    order: Order
    client_secret: str | None = None


@dataclass(frozen=True)
class Actor:
    """Who is asking. Roles come from the accounts app."""

    user_id: Any
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_elevated(self) -> bool:
        return self.role in ("admin", "vendor")


# ---- Ports (DIP) ----
class InventoryPort(Protocol):
    """Stock reservations, one product at a time."""

    def reserve(self, product_id, quantity: int) -> Decimal:
        """Atomically take ``quantity`` units and return the unit price.

        Raises:
            NotFound: If the product does not exist.
            InsufficientStock: If stock is lower than ``quantity``.
        """
        raise NotImplementedError()

    def release(self, product_id, quantity: int) -> bool:
        """Give units back. Returns False (no error) if the product is gone."""
        raise NotImplementedError()


class PaymentsPort(Protocol):
    def create_intent(self, amount_minor: int, currency: str, metadata: Mapping[str, str]) -> PaymentIntent:
        """Open a payment intent for ``amount_minor`` (integer cents).

        Raises:
            GatewayError: On network, timeout, auth or gateway failures.
        """
        raise NotImplementedError()


class OrderRepositoryPort(Protocol):
    def create(self, order: Order) -> Order:
        raise NotImplementedError()

    def get(self, order_id) -> Order | None:
        raise NotImplementedError()

    def transition(self, order_id, from_statuses: Iterable[OrderStatus], to_status: OrderStatus, **changes) -> bool:
        """Set the status only if the current one is in ``from_statuses``.

        The check and the write are one atomic step. Returns False when the
        order was not in an allowed status.
        """
        raise NotImplementedError()


# ---- Compensation ----
class ReservationBatch:
    """Stock reservations taken for one order, undone as a unit on failure.

    Use as a context manager. Every successful ``reserve`` is recorded; if
    the block exits with an exception before ``commit()``, the recorded
    reservations are released in reverse order. Each one is released at
    most once.
    """

    def __init__(self, inventory: InventoryPort):
        self._inventory = inventory
        self._taken: list[tuple[Any, int]] = []
        self._committed = False

    def __enter__(self) -> "ReservationBatch":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None and not self._committed:
            logger.warning(
                "order placement failed, releasing reservations",
                extra={"reservations": len(self._taken), "error": exc_type.__name__},
            )
            self.rollback()
        return False

    @property
    def reservations(self) -> list[tuple[Any, int]]:
        return list(self._taken)

    def reserve(self, product_id, quantity: int) -> Decimal:
        price = self._inventory.reserve(product_id, quantity)
        self._taken.append((product_id, quantity))
        return price

    def commit(self) -> None:
        self._committed = True

    def rollback(self) -> None:
        while self._taken:
            product_id, quantity = self._taken.pop()
            try:
                self._inventory.release(product_id, quantity)
            except Exception:
                logger.exception(
                    "failed to release reservation",
                    extra={"product_id": str(product_id), "quantity": quantity},
                )


# ---- Domain services ----
class OrderService:
    """Places orders: validate, reserve, price, pay, persist.

    Collaborators are passed in once (see ``providers.get_order_service``);
    the service holds no global clients.
    """

    def __init__(
        self,
        inventory: InventoryPort,
        payments: PaymentsPort,
        orders: OrderRepositoryPort,
        pricing: PricingPolicies | None = None,
        currency: str = "usd",
    ):
        self.inventory = inventory
        self.payments = payments
        self.orders = orders
        self.pricing = pricing or PricingPolicies()
        self.currency = currency

    def place_order(
        self,
        user_id,
        items: List[OrderItem],
        shipping_address: Mapping[str, Any],
        payment_method: PaymentMethod,
        coupon_code: str | None = None,
        notes: str = "",
    ) -> PlacedOrder:
        """Create a pending order for ``user_id``.

        Steps, in order: reject empty orders; reserve each item in request
        order (capturing its unit price); price the order; create a payment
        intent when ``payment_method.requires_intent``; persist with
        status and payment status ``pending``.

        Returns:
            PlacedOrder with the persisted order and, for gateway payments,
            the client secret.

        Raises:
            EmptyOrder: If ``items`` is empty.
            NotFound, InsufficientStock: If an item cannot be reserved.
            GatewayError: If the payment intent cannot be created.

        Every failure after a reservation releases the stock already taken
        by this call before the error reaches the caller.
        """
        if not items:
            raise EmptyOrder()
        payment_method = PaymentMethod(payment_method)
        order_id = uuid.uuid4()

        with ReservationBatch(self.inventory) as batch:
            # 1) Reserve stock, capturing prices
            lines = [
                LineItem(it.product_id, it.quantity, batch.reserve(it.product_id, it.quantity))
                for it in items
            ]

            # 2) Price
            totals = price_order(
                [(line.unit_price, line.quantity) for line in lines],
                shipping_address,
                discount=self.pricing.discount_for(coupon_code),
                shipping=self.pricing.shipping,
                tax=self.pricing.tax,
            )

            # 3) Payment intent (gateway-hosted only)
            intent = None
            if payment_method.requires_intent:
                intent = self.payments.create_intent(
                    to_minor_units(totals.grand_total),
                    self.currency,
                    {"order_id": str(order_id), "user_id": str(user_id)},
                )

            # 4) Persist
            order = self.orders.create(
                Order(
                    id=order_id,
                    user_id=user_id,
                    items=lines,
                    totals=totals,
                    payment_method=payment_method,
                    shipping_address=dict(shipping_address),
                    coupon_code=coupon_code,
                    payment_intent_id=intent.intent_id if intent else None,
                    notes=notes,
                )
            )
            batch.commit()

        logger.info(
            "order placed",
            extra={
                "order_id": str(order.id),
                "user_id": str(user_id),
                "lines": len(lines),
                "grand_total": str(totals.grand_total),
                "payment_method": payment_method.value,
            },
        )
        return PlacedOrder(order=order, client_secret=intent.client_secret if intent else None)


class OrderLifecycle:
    """Status changes after placement.

    Authorization rules: only elevated actors (vendor, admin) update the
    status; only the owner or an admin cancels. Terminal orders
    (delivered, cancelled) never change again.
    """

    def __init__(self, orders: OrderRepositoryPort, inventory: InventoryPort):
        self.orders = orders
        self.inventory = inventory

    def _get(self, order_id) -> Order:
        order = self.orders.get(order_id)
        if order is None:
            raise NotFound("Order not found")
        return order

    def update_status(
        self,
        order_id,
        new_status: OrderStatus,
        actor: Actor,
        tracking_number: str | None = None,
        estimated_delivery_date: date | None = None,
    ) -> Order:
        """Set the status of an order.

        Moving to ``delivered`` stamps ``actual_delivery_date``. Moving to
        ``cancelled`` goes through the cancellation path so stock is restored.

        Raises:
            Forbidden: If the actor is not vendor or admin.
            NotFound: If the order does not exist.
            InvalidTransition: If the order is delivered or cancelled, or
                changed concurrently.
        """
        if not actor.is_elevated:
            raise Forbidden("Not authorized to update this order")
        new_status = OrderStatus(new_status)
        order = self._get(order_id)

        if new_status is OrderStatus.CANCELLED:
            return self._cancel(order)
        if order.status in TERMINAL_STATUSES:
            raise InvalidTransition(f"Order is already {order.status.value}")

        changes: dict[str, Any] = {}
        if new_status is OrderStatus.DELIVERED:
            changes["actual_delivery_date"] = datetime.now(timezone.utc)
        if tracking_number is not None:
            changes["tracking_number"] = tracking_number
        if estimated_delivery_date is not None:
            changes["estimated_delivery_date"] = estimated_delivery_date

        if not self.orders.transition(order.id, [order.status], new_status, **changes):
            raise InvalidTransition("Order status changed concurrently, retry")
        logger.info(
            "order status updated",
            extra={"order_id": str(order.id), "from": order.status.value, "to": new_status.value},
        )
        return self._get(order.id)

    def cancel(self, order_id, actor: Actor) -> Order:
        """Cancel a pending or processing order and restore its stock.

        Raises:
            NotFound: If the order does not exist.
            Forbidden: If the actor is neither the owner nor an admin.
            InvalidTransition: If the order is not pending/processing,
                including when it is already cancelled.
        """
        order = self._get(order_id)
        if str(order.user_id) != str(actor.user_id) and not actor.is_admin:
            raise Forbidden("Not authorized to cancel this order")
        return self._cancel(order)

    def _cancel(self, order: Order) -> Order:
        if order.status not in CANCELLABLE_STATUSES:
            raise InvalidTransition("Order cannot be cancelled at this stage")
        # only one caller wins the flip
        if not self.orders.transition(order.id, CANCELLABLE_STATUSES, OrderStatus.CANCELLED):
            raise InvalidTransition("Order cannot be cancelled at this stage")

        restored = 0
        for line in order.items:
            try:
                if self.inventory.release(line.product_id, line.quantity):
                    restored += 1
            except Exception:
                logger.exception(
                    "failed to restore stock for cancelled order",
                    extra={"order_id": str(order.id), "product_id": str(line.product_id), "quantity": line.quantity},
                )
        logger.info(
            "order cancelled",
            extra={"order_id": str(order.id), "lines": len(order.items), "restored": restored},
        )
        return self._get(order.id)
