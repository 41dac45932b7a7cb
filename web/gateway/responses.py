"""Helpers that build the ``{success, data, message, errors}`` envelope."""

from rest_framework import status
from rest_framework.response import Response


def envelope(data=None, message: str | None = None, status_code: int = status.HTTP_200_OK, **extra) -> Response:
    """Return a successful DRF response wrapped in the API envelope.

    Keys whose value is None are omitted. ``extra`` is merged at the top
    level (for example ``client_secret`` or ``pagination``).
    """
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    body.update({k: v for k, v in extra.items() if v is not None})
    return Response(body, status=status_code)


def error_body(message: str, code: str | None = None, errors: list | None = None) -> dict:
    body = {"success": False, "message": message}
    if code:
        body["code"] = code
    if errors:
        body["errors"] = errors
    return body
