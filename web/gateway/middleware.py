"""Request-scoped middleware for the storefront API.

``RequestIdMiddleware`` gives every request a correlation id. The id comes
from the incoming ``X-Request-Id`` header when the client sends one and is
generated (UUIDv4) otherwise. It is stored on ``request.request_id`` and in
``REQUEST_ID_CTX`` so log records and outbound HTTP calls (see
``apps.orders.http_adapters``) can pick it up without passing it around.
The same id is echoed back in the ``X-Request-ID`` response header.

``ApiSizeLimitMiddleware`` rejects oversized API bodies before they are
parsed.
"""

import contextvars
import logging
import os
import uuid

from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")
MAX_API_BYTES = int(os.getenv("API_MAX_BYTES", str(1 * 1024 * 1024)))

logger = logging.getLogger("gateway.requests")


class RequestIdMiddleware(MiddlewareMixin):
    """Assign, propagate and echo a per-request identifier.

    Attributes:
        HEADER (str): Incoming header as found in ``request.META``.
        RESPONSE_HEADER (str): Header set on every response.
    """

    HEADER = "HTTP_X_REQUEST_ID"
    RESPONSE_HEADER = "X-Request-ID"

    def process_request(self, request):
        rid = request.META.get(self.HEADER) or str(uuid.uuid4())
        request.request_id = rid
        request._request_id_token = REQUEST_ID_CTX.set(rid)

    def process_response(self, request, response):
        """Set the response header and log one line per API request."""
        rid = getattr(request, "request_id", REQUEST_ID_CTX.get())
        response[self.RESPONSE_HEADER] = rid
        if request.path.startswith("/api/"):
            logger.info(
                "request handled",
                extra={"path": request.path, "method": request.method, "status": response.status_code},
            )
        token = getattr(request, "_request_id_token", None)
        if token is not None:
            REQUEST_ID_CTX.reset(token)
        return response


class ApiSizeLimitMiddleware(MiddlewareMixin):
    """Answer 413 for ``/api/`` requests whose body exceeds ``API_MAX_BYTES``."""

    def process_request(self, request):
        if not request.path.startswith("/api/"):
            return None
        clen = request.META.get("CONTENT_LENGTH")
        if clen and clen.isdigit() and int(clen) > MAX_API_BYTES:
            return JsonResponse(
                {"success": False, "message": "Payload too large", "code": "PAYLOAD_TOO_LARGE"}, status=413
            )
        return None
