"""HTTP views for the orders app.

Views stay small: they validate requests with pydantic, build domain
inputs, delegate to ``OrderService``/``OrderLifecycle`` (see ``providers``)
and wrap the result in the API envelope. Domain errors propagate to the DRF
exception handler, which renders them.

Idempotency: when ``Idempotency-Key`` is sent on create, the first response
is stored and replayed (same status, ``Idempotent-Replay: true``) for retries
with the same payload. The same key with another payload returns 409.
Payment gateway failures are not stored, so a retry with the key runs again.
"""

import logging

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.accounts.roles import IsVendor, IsVendorOrAdmin, is_admin, role_of
from apps.catalog.models import Product
from gateway.errors import Forbidden, GatewayError, NotFound, ShopError
from gateway.responses import envelope, error_body

from .domain import Actor, OrderItem
from .idempotency import discard, finalize, get_or_create_idempotent
from .providers import get_order_lifecycle, get_order_service
from .repository import OrderRepository
from .schemas import CreateOrderDTO, OrderReadDTO, StatusUpdateDTO

logger = logging.getLogger(__name__)


def actor_for(request) -> Actor:
    return Actor(user_id=request.user.pk, role=role_of(request.user))


def _dump(order) -> dict:
    return OrderReadDTO.from_domain(order).model_dump(mode="json")


class OrdersPingView(APIView):
    """Liveness probe for the orders module."""

    permission_classes = [AllowAny]

    def get(self, request):
        return envelope({"ok": True})


class OrdersCollectionView(APIView):
    """Place an order for the authenticated user.

    The response is 201 with the order and, for gateway-hosted payments, a
    top-level ``client_secret`` the client needs to complete the payment.
    """

    permission_classes = [IsAuthenticated]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_create"

    def post(self, request):
        dto = CreateOrderDTO.model_validate(request.data)

        idem_key = request.headers.get("Idempotency-Key")
        rec = None
        if idem_key:
            existing, rec = get_or_create_idempotent(idem_key, request.user.pk, request.data)
            if existing:
                resp = Response(rec.response_body, status=rec.response_status)
                resp["Idempotent-Replay"] = "true"
                return resp

        service = get_order_service()
        try:
            placed = service.place_order(
                user_id=request.user.pk,
                items=[OrderItem(product_id=i.product, quantity=i.quantity) for i in dto.items],
                shipping_address=dto.shipping_address.model_dump(exclude_none=True),
                payment_method=dto.payment_method,
                coupon_code=dto.coupon_code,
                notes=dto.notes,
            )
        except GatewayError:
            if rec:
                discard(rec)
            raise
        except ShopError as e:
            if rec:
                finalize(rec, e.status_code, error_body(e.message, e.code))
            raise
        except Exception:
            if rec:
                discard(rec)
            raise

        resp = envelope(
            _dump(placed.order),
            message="Order created successfully",
            status_code=status.HTTP_201_CREATED,
            client_secret=placed.client_secret,
        )
        if rec:
            finalize(rec, resp.status_code, resp.data, order_id=placed.order.id)
        return resp


class MyOrdersView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_list"

    def get(self, request):
        orders = OrderRepository().list_for_user(request.user.pk)
        return envelope([_dump(o) for o in orders])


class RetrieveOrderView(APIView):
    """Order detail, visible to its owner and to admins."""

    permission_classes = [IsAuthenticated]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_detail"

    def get(self, request, oid):
        order = OrderRepository().get(oid)
        if order is None:
            raise NotFound("Order not found")
        if order.user_id != request.user.pk and not is_admin(request.user):
            raise Forbidden("Not authorized to view this order")
        return envelope(_dump(order))


class OrderStatusView(APIView):
    permission_classes = [IsAuthenticated, IsVendorOrAdmin]

    def put(self, request, oid):
        dto = StatusUpdateDTO.model_validate(request.data)
        order = get_order_lifecycle().update_status(
            oid,
            dto.status,
            actor_for(request),
            tracking_number=dto.tracking_number,
            estimated_delivery_date=dto.estimated_delivery_date,
        )
        return envelope(_dump(order), message="Order status updated successfully")


class CancelOrderView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, oid):
        order = get_order_lifecycle().cancel(oid, actor_for(request))
        return envelope(_dump(order), message="Order cancelled successfully")


class VendorOrdersView(APIView):
    """Orders that contain at least one of the vendor's products."""

    permission_classes = [IsAuthenticated, IsVendor]

    def get(self, request):
        product_ids = Product.objects.filter(vendor=request.user).values_list("id", flat=True)
        orders = OrderRepository().list_for_products(product_ids)
        return envelope([_dump(o) for o in orders])
