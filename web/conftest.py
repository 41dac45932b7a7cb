import itertools
from decimal import Decimal

import pytest

_seq = itertools.count(1)


@pytest.fixture
def address():
    return {"street": "1 Main St", "city": "Springfield", "state": "IL", "country": "US", "zip_code": "62701"}


@pytest.fixture(autouse=True)
def use_stubs_for_tests(settings):
    settings.USE_HTTP_ADAPTERS = False


@pytest.fixture(autouse=True)
def clean_shared_state():
    from django.core.cache import cache

    from apps.orders.http_adapters import payments_breaker

    # throttle counters live in the cache; the breaker is module level
    cache.clear()
    payments_breaker.reset()
    yield
    payments_breaker.reset()


@pytest.fixture
def make_user(db):
    from django.contrib.auth import get_user_model

    from apps.accounts.models import Profile

    def _make(role="user", email=None, password="secret123"):
        n = next(_seq)
        email = email or f"{role}{n}@example.com"
        user = get_user_model().objects.create_user(
            username=email, email=email, password=password, first_name="Test", last_name=f"User{n}"
        )
        Profile.objects.create(user=user, role=role, phone="555-0100")
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user("user")


@pytest.fixture
def vendor(make_user):
    return make_user("vendor")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def make_product(vendor):
    from apps.catalog.models import Product

    def _make(price="10.00", stock=5, owner=None, **kw):
        n = next(_seq)
        return Product.objects.create(
            name=kw.pop("name", f"Product {n}"),
            description=kw.pop("description", "A product"),
            price=Decimal(price),
            sku=kw.pop("sku", f"SKU-{n:05d}"),
            category=kw.pop("category", "general"),
            vendor=owner or vendor,
            stock=stock,
            **kw,
        )

    return _make


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def client_for():
    """Return an ``APIClient`` authenticated as the given user."""
    from rest_framework.test import APIClient

    def _client(u):
        c = APIClient()
        c.force_authenticate(user=u)
        return c

    return _client
