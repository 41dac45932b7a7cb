import os
import tempfile

import pytest

# must be set before repo.py builds its engine
_DB_DIR = tempfile.mkdtemp(prefix="payments-test-")
os.environ.setdefault("PAYMENTS_DATABASE_URL", f"sqlite:///{_DB_DIR}/payments.db")


@pytest.fixture
def api():
    from fastapi.testclient import TestClient

    from main import app

    with TestClient(app) as c:
        yield c
