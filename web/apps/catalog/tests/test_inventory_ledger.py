import threading
import uuid
from decimal import Decimal

import pytest
from django.db import connection

from apps.catalog.inventory import InventoryLedger
from gateway.errors import InsufficientStock, NotFound, ValidationError


@pytest.mark.django_db
def test_reserve_decrements_and_returns_current_price(make_product):
    p = make_product(price="12.50", stock=5)
    ledger = InventoryLedger()

    assert ledger.reserve(p.id, 3) == Decimal("12.50")
    p.refresh_from_db()
    assert p.stock == 2


@pytest.mark.django_db
def test_reserve_exact_remaining_stock(make_product):
    p = make_product(stock=3)
    InventoryLedger().reserve(p.id, 3)
    p.refresh_from_db()
    assert p.stock == 0


@pytest.mark.django_db
def test_sequential_reservations_cannot_oversell(make_product):
    p = make_product(stock=5)
    ledger = InventoryLedger()
    ledger.reserve(p.id, 3)
    with pytest.raises(InsufficientStock):
        ledger.reserve(p.id, 3)
    p.refresh_from_db()
    assert p.stock == 2


@pytest.mark.django_db
def test_reserve_unknown_or_inactive_product(make_product):
    ledger = InventoryLedger()
    with pytest.raises(NotFound):
        ledger.reserve(uuid.uuid4(), 1)

    hidden = make_product(stock=5, is_active=False)
    with pytest.raises(NotFound):
        ledger.reserve(hidden.id, 1)
    hidden.refresh_from_db()
    assert hidden.stock == 5


@pytest.mark.django_db
def test_reserve_rejects_non_positive_quantity(make_product):
    p = make_product(stock=5)
    with pytest.raises(ValidationError):
        InventoryLedger().reserve(p.id, 0)


@pytest.mark.django_db
def test_release_adds_back_and_skips_missing(make_product):
    p = make_product(stock=1)
    ledger = InventoryLedger()
    assert ledger.release(p.id, 4) is True
    p.refresh_from_db()
    assert p.stock == 5
    assert ledger.release(uuid.uuid4(), 1) is False


@pytest.mark.django_db(transaction=True)
def test_concurrent_reservations_for_last_units(make_product):
    p = make_product(stock=5)
    barrier = threading.Barrier(2)
    results = []

    def worker():
        try:
            barrier.wait()
            InventoryLedger().reserve(p.id, 3)
            results.append("ok")
        except InsufficientStock:
            results.append("insufficient")
        finally:
            connection.close()

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == ["insufficient", "ok"]
    p.refresh_from_db()
    assert p.stock == 2
