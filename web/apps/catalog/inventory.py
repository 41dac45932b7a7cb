"""Inventory ledger backed by the ``products`` table.

Stock changes are single conditional UPDATE statements
(``stock = stock - q WHERE stock >= q``), so two requests racing for the
last units cannot both succeed: the database applies the check and the
decrement as one step. The unit price is read inside the same transaction,
after the UPDATE has taken the row lock, so the returned price is the one in
effect when the stock was taken.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from gateway.errors import InsufficientStock, NotFound, ValidationError

from .models import Product

logger = logging.getLogger(__name__)


class InventoryLedger:
    """``InventoryPort`` implementation used by the order workflow."""

    def reserve(self, product_id, quantity: int) -> Decimal:
        """Take ``quantity`` units of a product and return its unit price.

        Raises:
            ValidationError: If ``quantity`` is not positive.
            NotFound: If the product does not exist or is inactive.
            InsufficientStock: If fewer than ``quantity`` units are left.
        """
        if quantity <= 0:
            raise ValidationError("Quantity must be at least 1")

        with transaction.atomic():
            updated = (
                Product.objects.filter(pk=product_id, is_active=True, stock__gte=quantity)
                .update(stock=F("stock") - quantity, updated_at=timezone.now())
            )
            if updated:
                return Product.objects.values_list("price", flat=True).get(pk=product_id)
            product = Product.objects.filter(pk=product_id, is_active=True).only("name").first()

        if product is None:
            raise NotFound(f"Product not found: {product_id}")
        raise InsufficientStock(f"Insufficient stock for product: {product.name}")

    def release(self, product_id, quantity: int) -> bool:
        """Give ``quantity`` units back. A deleted product is skipped, not an error."""
        updated = (
            Product.objects.filter(pk=product_id)
            .update(stock=F("stock") + quantity, updated_at=timezone.now())
        )
        if not updated:
            logger.warning("stock release skipped, product missing", extra={"product_id": str(product_id)})
            return False
        return True
