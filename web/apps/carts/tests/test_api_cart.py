from decimal import Decimal

import pytest

URL = "/api/cart/"


@pytest.mark.django_db
def test_empty_cart(client_for, user):
    r = client_for(user).get(URL)
    assert r.status_code == 200
    assert r.json()["data"] == {"items": [], "total": "0"}


@pytest.mark.django_db
def test_add_sets_quantity_and_total_uses_live_prices(client_for, user, make_product):
    p = make_product(price="10.00", stock=5)
    c = client_for(user)
    c.post(f"{URL}items", {"product": str(p.id), "quantity": 1}, format="json")
    r = c.post(f"{URL}items", {"product": str(p.id), "quantity": 3}, format="json")

    data = r.json()["data"]
    assert len(data["items"]) == 1
    assert data["items"][0]["quantity"] == 3
    assert Decimal(data["total"]) == Decimal("30.00")

    p.price = Decimal("12.00")
    p.save()
    assert Decimal(c.get(URL).json()["data"]["total"]) == Decimal("36.00")


@pytest.mark.django_db
def test_add_checks_stock_and_existence(client_for, user, make_product):
    import uuid

    p = make_product(stock=2)
    c = client_for(user)
    r = c.post(f"{URL}items", {"product": str(p.id), "quantity": 3}, format="json")
    assert r.status_code == 400
    assert r.json()["code"] == "INSUFFICIENT_STOCK"

    r = c.post(f"{URL}items", {"product": str(uuid.uuid4()), "quantity": 1}, format="json")
    assert r.status_code == 404


@pytest.mark.django_db
def test_update_quantity(client_for, user, make_product):
    p = make_product(stock=4)
    c = client_for(user)
    c.post(f"{URL}items", {"product": str(p.id), "quantity": 1}, format="json")

    r = c.put(f"{URL}items/{p.id}", {"quantity": 4}, format="json")
    assert r.json()["data"]["items"][0]["quantity"] == 4
    assert c.put(f"{URL}items/{p.id}", {"quantity": 5}, format="json").status_code == 400
    assert c.put(f"{URL}items/{p.id}", {"quantity": 0}, format="json").status_code == 400


@pytest.mark.django_db
def test_update_missing_item(client_for, user, make_product):
    p = make_product()
    r = client_for(user).put(f"{URL}items/{p.id}", {"quantity": 1}, format="json")
    assert r.status_code == 404


@pytest.mark.django_db
def test_remove_and_clear(client_for, user, make_product):
    p1, p2 = make_product(), make_product()
    c = client_for(user)
    for p in (p1, p2):
        c.post(f"{URL}items", {"product": str(p.id), "quantity": 1}, format="json")

    r = c.delete(f"{URL}items/{p1.id}")
    assert [i["product"]["id"] for i in r.json()["data"]["items"]] == [str(p2.id)]

    r = c.delete(URL)
    assert r.json()["message"] == "Cart cleared successfully"
    assert c.get(URL).json()["data"]["items"] == []


@pytest.mark.django_db
def test_carts_are_per_user(client_for, make_user, make_product):
    p = make_product()
    a, b = make_user(), make_user()
    client_for(a).post(f"{URL}items", {"product": str(p.id), "quantity": 1}, format="json")
    assert client_for(b).get(URL).json()["data"]["items"] == []
