import uuid

import pytest

CREATE_URL = "/api/orders/"
DETAIL_URL = "/api/orders/{oid}/"


@pytest.fixture
def place(client_for, address):
    def _place(user, product, qty=1):
        r = client_for(user).post(
            CREATE_URL,
            {
                "items": [{"product": str(product.id), "quantity": qty}],
                "shipping_address": address,
                "payment_method": "card",
            },
            format="json",
        )
        assert r.status_code == 201, r.json()
        return r.json()["data"]["id"]

    return _place


@pytest.mark.django_db
def test_my_orders_newest_first_and_only_mine(client_for, make_user, make_product, place):
    me, other = make_user(), make_user()
    p = make_product(stock=10)
    first = place(me, p)
    second = place(me, p)
    place(other, p)

    r = client_for(me).get("/api/orders/my-orders")
    assert r.status_code == 200
    assert [o["id"] for o in r.json()["data"]] == [second, first]


@pytest.mark.django_db
def test_detail_owner_and_admin_only(client_for, make_user, admin, vendor, make_product, place):
    owner = make_user()
    oid = place(owner, make_product())

    assert client_for(owner).get(DETAIL_URL.format(oid=oid)).status_code == 200
    assert client_for(admin).get(DETAIL_URL.format(oid=oid)).status_code == 200

    r = client_for(make_user()).get(DETAIL_URL.format(oid=oid))
    assert r.status_code == 403
    assert r.json()["code"] == "FORBIDDEN"
    assert client_for(vendor).get(DETAIL_URL.format(oid=oid)).status_code == 403


@pytest.mark.django_db
def test_detail_not_found(client_for, user):
    r = client_for(user).get(DETAIL_URL.format(oid=uuid.uuid4()))
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Order not found", "code": "NOT_FOUND"}


@pytest.mark.django_db
def test_vendor_sees_orders_with_own_products(client_for, make_user, vendor, make_product, place):
    buyer = make_user()
    mine = make_product(owner=vendor)
    theirs = make_product(owner=make_user("vendor"))
    with_mine = place(buyer, mine)
    place(buyer, theirs)

    r = client_for(vendor).get("/api/vendor/orders")
    assert r.status_code == 200
    assert [o["id"] for o in r.json()["data"]] == [with_mine]


@pytest.mark.django_db
def test_vendor_orders_requires_vendor_role(client_for, user):
    assert client_for(user).get("/api/vendor/orders").status_code == 403
