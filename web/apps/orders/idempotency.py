"""Idempotency keys for order creation.

A client may send ``Idempotency-Key`` with ``POST /api/orders/``. The first
request with a key records the request hash; once it finishes, its response
is stored. Retries with the same key and the same payload get the stored
response back without placing a second order. Reusing the key with a
different payload (or from another user) is a conflict.
"""

import hashlib
import json

from django.db import IntegrityError, transaction

from gateway.errors import IdempotencyConflict

from .models import IdempotencyKey


def _hash(user_id, payload) -> str:
    """Stable SHA-256 over the user id and the JSON payload (sorted keys)."""
    body = json.dumps({"user": str(user_id), "payload": payload}, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


@transaction.atomic
def get_or_create_idempotent(key: str, user_id, payload) -> tuple[bool, IdempotencyKey]:
    """Get-or-create the record for ``key``.

    Returns:
        tuple[bool, IdempotencyKey]: ``(existing, rec)``; ``existing`` is False
        when this call created the record and the caller must run the request
        and ``finalize`` it.

    Raises:
        IdempotencyConflict: If the key is known with a different payload or
            user, or its first request has not finished yet.
    """
    h = _hash(user_id, payload)

    try:
        # savepoint: an IntegrityError only rolls back this block
        with transaction.atomic():
            rec = IdempotencyKey.objects.create(key=key, user_id=user_id, request_hash=h)
            return False, rec
    except IntegrityError:
        rec = IdempotencyKey.objects.select_for_update().get(key=key)
        if rec.request_hash != h:
            raise IdempotencyConflict()
        if not rec.response_status:
            raise IdempotencyConflict("A request with this idempotency key is still in progress")
        return True, rec


def finalize(rec: IdempotencyKey, status_code: int, body: dict, order_id=None) -> None:
    """Store the response so retries can replay it."""
    rec.response_status = status_code
    rec.response_body = body
    if order_id is not None:
        rec.order_id = order_id
    rec.save(update_fields=["response_status", "response_body", "order_id"])


def discard(rec: IdempotencyKey) -> None:
    """Forget a key whose request died with an unexpected error, so it can be retried."""
    IdempotencyKey.objects.filter(pk=rec.pk).delete()
