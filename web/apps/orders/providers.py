"""Wiring for the order services.

``get_order_service`` and ``get_order_lifecycle`` build the domain services
with their concrete ports: the ORM inventory ledger, the ORM order
repository and, depending on ``settings.USE_HTTP_ADAPTERS``, either the
HTTP payments client or the local ``PaymentsStub``.
"""

from decimal import Decimal

from django.conf import settings

from apps.catalog.inventory import InventoryLedger

from .adapters import PaymentsStub
from .domain import OrderLifecycle, OrderService, PaymentsPort
from .http_adapters import HttpPaymentsClient
from .pricing import FlatRateTax, FlatShipping, PercentOff, PricingPolicies
from .repository import OrderRepository


def get_payments() -> PaymentsPort:
    if getattr(settings, "USE_HTTP_ADAPTERS", True):
        return HttpPaymentsClient()
    return PaymentsStub()


def get_pricing() -> PricingPolicies:
    """Pricing policies configured by ``SHIPPING_FLAT_RATE``, ``TAX_RATE``
    and ``COUPON_PERCENT_OFF``."""
    return PricingPolicies(
        shipping=FlatShipping(settings.SHIPPING_FLAT_RATE),
        tax=FlatRateTax(settings.TAX_RATE),
        coupons={
            code: PercentOff(Decimal(pct)) for code, pct in getattr(settings, "COUPON_PERCENT_OFF", {}).items()
        },
    )


def get_order_service() -> OrderService:
    """Return an ``OrderService`` wired for the current settings.

    Returns:
        OrderService: Service backed by the database and the configured
        payments adapter.
    """
    return OrderService(
        inventory=InventoryLedger(),
        payments=get_payments(),
        orders=OrderRepository(),
        pricing=get_pricing(),
        currency=getattr(settings, "PAYMENTS_CURRENCY", "usd"),
    )


def get_order_lifecycle() -> OrderLifecycle:
    return OrderLifecycle(orders=OrderRepository(), inventory=InventoryLedger())
