import pytest
from django.contrib.auth import get_user_model
from rest_framework.authtoken.models import Token

REGISTER = {
    "first_name": "Ana",
    "last_name": "Lopez",
    "email": "Ana@Shop.io",
    "password": "s3cret!",
    "phone": "555-0101",
}


@pytest.mark.django_db
def test_register_creates_user_profile_and_token(api_client):
    r = api_client.post("/api/auth/register", {**REGISTER, "role": "vendor"}, format="json")

    assert r.status_code == 201
    body = r.json()
    assert body["data"]["email"] == "ana@shop.io"
    assert body["data"]["role"] == "vendor"
    user = get_user_model().objects.get(username="ana@shop.io")
    assert Token.objects.get(user=user).key == body["token"]


@pytest.mark.django_db
def test_register_cannot_self_assign_admin(api_client):
    r = api_client.post("/api/auth/register", {**REGISTER, "role": "admin"}, format="json")
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "role"


@pytest.mark.django_db
def test_register_duplicate_email(api_client):
    api_client.post("/api/auth/register", REGISTER, format="json")
    r = api_client.post("/api/auth/register", {**REGISTER, "email": "ana@shop.io"}, format="json")
    assert r.status_code == 400


@pytest.mark.django_db
def test_login_and_use_token(api_client, make_user):
    make_user(email="bob@shop.io", password="pa55word")
    r = api_client.post("/api/auth/login", {"email": "BOB@shop.io", "password": "pa55word"}, format="json")
    assert r.status_code == 200
    token = r.json()["token"]

    api_client.credentials(HTTP_AUTHORIZATION=f"Token {token}")
    r = api_client.get("/api/users/profile")
    assert r.status_code == 200
    assert r.json()["data"]["email"] == "bob@shop.io"


@pytest.mark.django_db
def test_login_bad_password(api_client, make_user):
    make_user(email="bob@shop.io", password="pa55word")
    r = api_client.post("/api/auth/login", {"email": "bob@shop.io", "password": "nope"}, format="json")
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHORIZED"


@pytest.mark.django_db
def test_profile_update(client_for, user):
    r = client_for(user).put(
        "/api/users/profile",
        {"first_name": "New", "last_name": "Name", "phone": "555-9999", "address": {"city": "Lyon"}},
        format="json",
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert (data["first_name"], data["phone"], data["address"]) == ("New", "555-9999", {"city": "Lyon"})


@pytest.mark.django_db
def test_change_password(client_for, make_user):
    u = make_user(password="old-pass")
    c = client_for(u)

    r = c.put("/api/users/password", {"current_password": "wrong", "new_password": "new-pass"}, format="json")
    assert r.status_code == 401

    r = c.put("/api/users/password", {"current_password": "old-pass", "new_password": "new-pass"}, format="json")
    assert r.status_code == 200
    u.refresh_from_db()
    assert u.check_password("new-pass")


@pytest.mark.django_db
def test_profile_requires_auth(api_client):
    assert api_client.get("/api/users/profile").status_code == 401
