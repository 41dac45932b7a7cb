"""In-process adapters for the orders domain ports.

These implement ``InventoryPort``, ``PaymentsPort`` and
``OrderRepositoryPort`` without a database or network. They are used by
unit tests and by local runs with ``USE_HTTP_ADAPTERS=False`` (payments
only; stock and orders still live in the database there).
"""

import copy
import secrets
import threading
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Mapping

from gateway.errors import GatewayError, InsufficientStock, NotFound, ValidationError

from .domain import Order, OrderStatus, PaymentIntent


class InMemoryInventory:
    """Thread-safe stock table keyed by product id.

    ``products`` maps product id to ``(unit_price, stock)``. One lock guards
    the whole table, so check-and-decrement is atomic.
    """

    def __init__(self, products: Mapping | None = None):
        self._lock = threading.Lock()
        self._products: dict = {
            pid: [Decimal(price), int(stock)] for pid, (price, stock) in (products or {}).items()
        }

    def stock(self, product_id) -> int:
        with self._lock:
            return self._products[product_id][1]

    def set_price(self, product_id, price) -> None:
        with self._lock:
            self._products[product_id][0] = Decimal(price)

    def remove(self, product_id) -> None:
        with self._lock:
            self._products.pop(product_id, None)

    def reserve(self, product_id, quantity: int) -> Decimal:
        if quantity <= 0:
            raise ValidationError("Quantity must be at least 1")
        with self._lock:
            entry = self._products.get(product_id)
            if entry is None:
                raise NotFound(f"Product not found: {product_id}")
            price, stock = entry
            if stock < quantity:
                raise InsufficientStock(f"Insufficient stock for product: {product_id}")
            entry[1] = stock - quantity
            return price

    def release(self, product_id, quantity: int) -> bool:
        with self._lock:
            entry = self._products.get(product_id)
            if entry is None:
                return False
            entry[1] += quantity
            return True


class PaymentsStub:
    """Approves every positive amount and makes up intent ids locally."""

    def __init__(self):
        self.calls: list[tuple[int, str, dict]] = []

    def create_intent(self, amount_minor: int, currency: str, metadata: Mapping[str, str]) -> PaymentIntent:
        if amount_minor <= 0:
            raise GatewayError("Amount must be positive")
        self.calls.append((amount_minor, currency, dict(metadata)))
        intent_id = f"pi_{secrets.token_hex(12)}"
        return PaymentIntent(intent_id=intent_id, client_secret=f"{intent_id}_secret_{secrets.token_hex(12)}")


class InMemoryOrderRepository:
    """Dict-backed order storage with the same compare-and-set semantics."""

    def __init__(self):
        self._lock = threading.Lock()
        self._orders: dict = {}

    def create(self, order: Order) -> Order:
        now = datetime.now(timezone.utc)
        stored = replace(order, created_at=now, updated_at=now)
        with self._lock:
            self._orders[stored.id] = stored
        return copy.deepcopy(stored)

    def get(self, order_id) -> Order | None:
        with self._lock:
            order = self._orders.get(order_id)
            return copy.deepcopy(order) if order else None

    def transition(self, order_id, from_statuses: Iterable[OrderStatus], to_status: OrderStatus, **changes) -> bool:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None or order.status not in set(from_statuses):
                return False
            self._orders[order_id] = replace(
                order, status=to_status, updated_at=datetime.now(timezone.utc), **changes
            )
            return True
