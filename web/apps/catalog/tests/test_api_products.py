from decimal import Decimal

import pytest

URL = "/api/products/"


def _new(**kw):
    return {
        "name": "Desk Lamp",
        "description": "Warm light",
        "price": "25.00",
        "sku": "lamp-001",
        "category": "home",
        "stock": 7,
        "tags": [" light ", ""],
        **kw,
    }


@pytest.mark.django_db
def test_vendor_creates_product(client_for, vendor):
    r = client_for(vendor).post(URL, _new(), format="json")

    assert r.status_code == 201
    data = r.json()["data"]
    assert data["sku"] == "LAMP-001"
    assert data["tags"] == ["light"]
    assert data["vendor_id"] == vendor.pk
    assert Decimal(data["price"]) == Decimal("25.00")


@pytest.mark.django_db
def test_plain_user_cannot_create(client_for, user):
    assert client_for(user).post(URL, _new(), format="json").status_code == 403


@pytest.mark.django_db
def test_duplicate_sku_rejected(client_for, vendor):
    c = client_for(vendor)
    c.post(URL, _new(), format="json")
    r = c.post(URL, _new(name="Other"), format="json")
    assert r.status_code == 400
    assert "SKU" in r.json()["message"]


@pytest.mark.django_db
def test_invalid_product_payload(client_for, vendor):
    r = client_for(vendor).post(URL, _new(price="-1", sku="x"), format="json")
    assert r.status_code == 400
    fields = {e["field"] for e in r.json()["errors"]}
    assert {"price", "sku"} <= fields


@pytest.mark.django_db
def test_list_filters_sorts_and_paginates(api_client, make_product):
    make_product(name="Red Shoe", price="30.00", category="shoes")
    make_product(name="Blue Shoe", price="50.00", category="shoes")
    make_product(name="Hat", price="20.00", category="hats")
    make_product(name="Hidden Shoe", price="40.00", category="shoes", is_active=False)

    r = api_client.get(URL, {"category": "shoes", "sort": "price"})
    body = r.json()
    assert [p["name"] for p in body["data"]] == ["Red Shoe", "Blue Shoe"]
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 2, "pages": 1}

    r = api_client.get(URL, {"search": "shoe", "min_price": "35"})
    assert [p["name"] for p in r.json()["data"]] == ["Blue Shoe"]

    r = api_client.get(URL, {"sort": "-price", "limit": 1, "page": 2})
    assert [p["name"] for p in r.json()["data"]] == ["Red Shoe"]


@pytest.mark.django_db
def test_list_rejects_unknown_sort(api_client):
    r = api_client.get(URL, {"sort": "password"})
    assert r.status_code == 400


@pytest.mark.django_db
def test_owner_updates_and_deletes(client_for, vendor, make_product):
    p = make_product(owner=vendor, price="10.00")
    c = client_for(vendor)

    r = c.put(f"{URL}{p.id}/", {"price": "12.00", "stock": 9}, format="json")
    assert r.status_code == 200
    assert Decimal(r.json()["data"]["price"]) == Decimal("12.00")
    assert r.json()["data"]["stock"] == 9

    r = c.delete(f"{URL}{p.id}/")
    assert r.status_code == 200
    assert c.get(f"{URL}{p.id}/").status_code == 404


@pytest.mark.django_db
def test_other_vendor_cannot_modify(client_for, make_user, make_product, admin):
    p = make_product()
    r = client_for(make_user("vendor")).put(f"{URL}{p.id}/", {"price": "1.00"}, format="json")
    assert r.status_code == 403
    assert client_for(admin).put(f"{URL}{p.id}/", {"price": "1.00"}, format="json").status_code == 200


@pytest.mark.django_db
def test_rating_upserts_and_averages(client_for, make_user, make_product):
    p = make_product()
    u1, u2 = make_user(), make_user()
    client_for(u1).post(f"{URL}{p.id}/ratings", {"rating": 2, "review": "meh"}, format="json")
    client_for(u2).post(f"{URL}{p.id}/ratings", {"rating": 4, "review": "good"}, format="json")
    r = client_for(u1).post(f"{URL}{p.id}/ratings", {"rating": 5, "review": "grew on me"}, format="json")

    assert r.status_code == 200
    assert r.json()["data"]["average_rating"] == 4.5
    assert p.ratings.count() == 2


@pytest.mark.django_db
def test_rating_out_of_range(client_for, user, make_product):
    p = make_product()
    r = client_for(user).post(f"{URL}{p.id}/ratings", {"rating": 6, "review": "!"}, format="json")
    assert r.status_code == 400


@pytest.mark.django_db
def test_vendor_products_lists_only_own(client_for, vendor, make_user, make_product):
    mine = make_product(owner=vendor)
    make_product(owner=make_user("vendor"))
    r = client_for(vendor).get("/api/vendor/products")
    assert [p["id"] for p in r.json()["data"]] == [str(mine.id)]


@pytest.mark.django_db
def test_vendor_profile_includes_own_products(client_for, vendor, make_user, make_product):
    mine = make_product(owner=vendor)
    make_product(owner=make_user("vendor"))

    r = client_for(vendor).get("/api/vendor/profile")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["email"] == vendor.email
    assert data["role"] == "vendor"
    assert [p["id"] for p in data["products"]] == [str(mine.id)]


@pytest.mark.django_db
def test_vendor_profile_update(client_for, vendor):
    c = client_for(vendor)
    r = c.put(
        "/api/vendor/profile",
        {"first_name": "Ada", "last_name": "Shop", "phone": "555-0199", "address": {"city": "Springfield"}},
        format="json",
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert (data["first_name"], data["phone"], data["address"]) == ("Ada", "555-0199", {"city": "Springfield"})

    r = c.put("/api/vendor/profile", {"first_name": "Ada", "last_name": "Shop"}, format="json")
    assert r.status_code == 400


@pytest.mark.django_db
def test_vendor_profile_requires_vendor_role(client_for, user):
    assert client_for(user).get("/api/vendor/profile").status_code == 403
