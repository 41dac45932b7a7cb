import logging

from django.conf import settings
from django.db import DatabaseError, connection
from django.http import JsonResponse

from apps.orders.http_adapters import payments_breaker

logger = logging.getLogger(__name__)


def health_view(_request):
    """Report database reachability and the payments circuit state.

    Returns 200 when the database answers, 503 otherwise. The payments
    gateway is reported but never probed from here.
    """
    db_ok = False
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1;")
        db_ok = True
    except DatabaseError:
        logger.warning("health check: database unreachable", exc_info=True)

    payments = {"mode": "http" if getattr(settings, "USE_HTTP_ADAPTERS", True) else "stub"}
    if payments["mode"] == "http":
        payments["circuit"] = payments_breaker.state

    return JsonResponse(
        {
            "success": db_ok,
            "data": {"ok": db_ok, "components": {"db": {"ok": db_ok}, "payments": payments}},
        },
        status=200 if db_ok else 503,
    )
