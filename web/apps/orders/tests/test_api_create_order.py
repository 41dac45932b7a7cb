"""API tests for the create-order endpoint.

Payments go through ``PaymentsStub`` (``USE_HTTP_ADAPTERS=False`` in
conftest); stock and orders use the test database.
"""

import uuid
from decimal import Decimal

import pytest
from django.db import connection

from apps.orders.models import OrderModel
from gateway.errors import GatewayError

CREATE_URL = "/api/orders/"


def _payload(address, *lines, method="card", **extra):
    return {
        "items": [{"product": str(p.id), "quantity": qty} for p, qty in lines],
        "shipping_address": address,
        "payment_method": method,
        **extra,
    }


@pytest.mark.django_db
def test_create_order_computes_totals_and_reserves(client_for, user, make_product, address):
    p = make_product(price="10.00", stock=5)
    r = client_for(user).post(CREATE_URL, _payload(address, (p, 2)), format="json")

    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    data = body["data"]
    assert Decimal(data["subtotal"]) == Decimal("20.00")
    assert Decimal(data["shipping_cost"]) == Decimal("10.00")
    assert Decimal(data["tax_amount"]) == Decimal("2.00")
    assert Decimal(data["total_amount"]) == Decimal("32.00")
    assert data["order_status"] == "pending"
    assert data["payment_status"] == "pending"
    assert data["items"][0]["product"] == str(p.id)
    assert "client_secret" not in body
    p.refresh_from_db()
    assert p.stock == 3


@pytest.mark.django_db
def test_create_persists_order_row(client_for, user, make_product, address):
    p = make_product(price="10.00", stock=5)
    r = client_for(user).post(CREATE_URL, _payload(address, (p, 2)), format="json")
    oid = uuid.UUID(r.json()["data"]["id"])

    with connection.cursor() as cur:
        cur.execute("select order_status, total_amount, user_id from orders where id = %s", [oid.hex])
        row = cur.fetchone()
    assert row is not None
    status, total, user_id = row
    assert status == "pending"
    assert Decimal(str(total)) == Decimal("32")
    assert user_id == user.pk


@pytest.mark.django_db
def test_gateway_payment_returns_client_secret(client_for, user, make_product, address):
    p = make_product(price="10.00", stock=5)
    r = client_for(user).post(CREATE_URL, _payload(address, (p, 1), method="gateway"), format="json")

    assert r.status_code == 201
    body = r.json()
    assert body["client_secret"].startswith(body["data"]["payment_intent_id"])


@pytest.mark.django_db
def test_missing_product_returns_404_and_restores_stock(client_for, user, make_product, address):
    p = make_product(price="10.00", stock=5)
    ghost = type("Ghost", (), {"id": uuid.uuid4()})
    r = client_for(user).post(CREATE_URL, _payload(address, (p, 3), (ghost, 1)), format="json")

    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"
    p.refresh_from_db()
    assert p.stock == 5
    assert OrderModel.objects.count() == 0


@pytest.mark.django_db
def test_inactive_product_is_not_orderable(client_for, user, make_product, address):
    p = make_product(stock=5, is_active=False)
    r = client_for(user).post(CREATE_URL, _payload(address, (p, 1)), format="json")
    assert r.status_code == 404


@pytest.mark.django_db
def test_insufficient_stock_returns_400_and_restores_stock(client_for, user, make_product, address):
    p1 = make_product(stock=5)
    p2 = make_product(stock=1)
    r = client_for(user).post(CREATE_URL, _payload(address, (p1, 2), (p2, 2)), format="json")

    assert r.status_code == 400
    assert r.json()["code"] == "INSUFFICIENT_STOCK"
    p1.refresh_from_db()
    p2.refresh_from_db()
    assert (p1.stock, p2.stock) == (5, 1)


@pytest.mark.django_db
def test_gateway_failure_returns_502_and_restores_stock(client_for, user, make_product, address, monkeypatch):
    class FailingPayments:
        def create_intent(self, amount_minor, currency, metadata):
            raise GatewayError()

    monkeypatch.setattr("apps.orders.providers.get_payments", lambda: FailingPayments(), raising=True)
    p = make_product(stock=5)
    r = client_for(user).post(CREATE_URL, _payload(address, (p, 2), method="gateway"), format="json")

    assert r.status_code == 502
    assert r.json()["code"] == "PAYMENT_GATEWAY_ERROR"
    p.refresh_from_db()
    assert p.stock == 5
    assert OrderModel.objects.count() == 0


@pytest.mark.django_db
def test_empty_order_rejected(client_for, user, address):
    r = client_for(user).post(CREATE_URL, _payload(address), format="json")
    assert r.status_code == 400
    assert r.json()["code"] == "EMPTY_ORDER"


@pytest.mark.django_db
def test_validation_error_lists_fields(client_for, user, make_product, address):
    p = make_product()
    payload = _payload(address, (p, 0), method="bitcoin")
    r = client_for(user).post(CREATE_URL, payload, format="json")

    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["code"] == "VALIDATION_ERROR"
    fields = {e["field"] for e in body["errors"]}
    assert {"items.0.quantity", "payment_method"} <= fields


@pytest.mark.django_db
def test_requires_authentication(api_client, address):
    r = api_client.post(CREATE_URL, {"items": []}, format="json")
    assert r.status_code == 401
    assert r.json()["success"] is False


@pytest.mark.django_db
def test_coupon_from_settings(client_for, user, make_product, address, settings):
    settings.COUPON_PERCENT_OFF = {"SAVE10": Decimal("10")}
    p = make_product(price="50.00", stock=5)
    r = client_for(user).post(CREATE_URL, _payload(address, (p, 2), coupon_code="save10"), format="json")

    data = r.json()["data"]
    assert Decimal(data["discount_amount"]) == Decimal("10.00")
    assert Decimal(data["total_amount"]) == Decimal("109.00")
    assert data["coupon_code"] == "SAVE10"


@pytest.mark.django_db
def test_fractional_discount_and_tax_are_stored_exactly(client_for, user, make_product, address, settings):
    settings.COUPON_PERCENT_OFF = {"SAVE15": Decimal("15")}
    p = make_product(price="19.99", stock=5)
    r = client_for(user).post(
        CREATE_URL, _payload(address, (p, 1), method="gateway", coupon_code="save15"), format="json"
    )

    assert r.status_code == 201
    data = r.json()["data"]
    subtotal, discount, shipping, tax, total = (
        Decimal(data[k]) for k in ("subtotal", "discount_amount", "shipping_cost", "tax_amount", "total_amount")
    )
    assert discount == Decimal("2.9985")
    assert tax == Decimal("1.69915")
    assert total == subtotal - discount + shipping + tax == Decimal("28.69065")

    row = OrderModel.objects.get(pk=data["id"])
    assert row.total_amount == row.subtotal - row.discount_amount + row.shipping_cost + row.tax_amount


@pytest.mark.django_db
def test_totals_that_cannot_be_stored_exactly_are_rejected(client_for, user, make_product, address, settings):
    settings.TAX_RATE = Decimal("0.123456789")
    p = make_product(price="10.01", stock=5)
    r = client_for(user).post(CREATE_URL, _payload(address, (p, 1)), format="json")

    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"
    p.refresh_from_db()
    assert p.stock == 5
    assert OrderModel.objects.count() == 0


@pytest.mark.django_db
def test_price_change_after_order_does_not_touch_line_items(client_for, user, make_product, address):
    p = make_product(price="10.00", stock=5)
    c = client_for(user)
    oid = c.post(CREATE_URL, _payload(address, (p, 1)), format="json").json()["data"]["id"]
    p.price = Decimal("99.00")
    p.save()

    data = c.get(f"/api/orders/{oid}/").json()["data"]
    assert Decimal(data["items"][0]["unit_price"]) == Decimal("10.00")
    assert Decimal(data["subtotal"]) == Decimal("10.00")


@pytest.mark.django_db
def test_ping(api_client):
    r = api_client.get("/api/orders/ping/")
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": {"ok": True}}
