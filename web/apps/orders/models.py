import uuid

from django.conf import settings
from django.db import models


MONEY_DIGITS = 24
MONEY_PLACES = 10


class OrderModel(models.Model):
    """Persisted order.

    Money columns keep ``MONEY_PLACES`` decimal places: totals are stored
    exactly as priced, percent discounts and tax included. The UUID primary key is assigned by the
    workflow before persistence (the payment intent metadata carries it).
    """

    class Status(models.TextChoices):
        PENDING = "pending"
        PROCESSING = "processing"
        SHIPPED = "shipped"
        DELIVERED = "delivered"
        CANCELLED = "cancelled"

    class PaymentStatus(models.TextChoices):
        PENDING = "pending"
        COMPLETED = "completed"
        FAILED = "failed"
        REFUNDED = "refunded"

    class PaymentMethod(models.TextChoices):
        CARD = "card"
        PAYPAL = "paypal"
        GATEWAY = "gateway"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="orders")

    subtotal = models.DecimalField(max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    discount_amount = models.DecimalField(max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES, default=0)
    shipping_cost = models.DecimalField(max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    tax_amount = models.DecimalField(max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)
    total_amount = models.DecimalField(max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES)

    shipping_address = models.JSONField(default=dict)
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices)
    payment_status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    order_status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, db_index=True)
    payment_intent_id = models.CharField(max_length=128, null=True, blank=True)
    coupon_code = models.CharField(max_length=64, null=True, blank=True)

    tracking_number = models.CharField(max_length=128, null=True, blank=True)
    estimated_delivery_date = models.DateField(null=True, blank=True)
    actual_delivery_date = models.DateTimeField(null=True, blank=True)
    refund_details = models.JSONField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]


class OrderLineItemModel(models.Model):
    """One order line. ``product_id`` is a plain column, not a foreign key,
    so deleting a product never touches past orders."""

    order = models.ForeignKey(OrderModel, on_delete=models.CASCADE, related_name="items")
    position = models.PositiveSmallIntegerField()
    product_id = models.UUIDField(db_index=True)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "order_items"
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(fields=["order", "position"], name="ux_order_item_position"),
        ]


class IdempotencyKey(models.Model):
    """Stored outcome of an order-creation request sent with ``Idempotency-Key``."""

    key = models.CharField(max_length=200, primary_key=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, null=True)
    request_hash = models.CharField(max_length=64)
    response_status = models.PositiveSmallIntegerField(default=0)
    response_body = models.JSONField(default=dict)
    order_id = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "order_idempotency_keys"
