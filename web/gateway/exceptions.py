"""DRF exception handler that renders every failure in the API envelope.

Wired through ``REST_FRAMEWORK["EXCEPTION_HANDLER"]``. Mapping:

- ``ShopError`` subclasses: their own status code, message and code.
- pydantic ``ValidationError``: 400 with the list of field errors.
- DRF/Django exceptions (404, 401, 403, 405, throttling...): status kept,
  detail flattened into ``message``/``errors``.
- Anything else: logged with traceback, generic 500 without internals.
"""

import logging

import pydantic
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .errors import ShopError, InternalError
from .responses import error_body

logger = logging.getLogger(__name__)


def pydantic_errors(exc: pydantic.ValidationError) -> list[dict]:
    """Flatten pydantic errors to JSON-safe ``{field, message}`` dicts."""
    return [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors(include_url=False, include_context=False, include_input=False)
    ]


def api_exception_handler(exc, context):
    if isinstance(exc, ShopError):
        body = error_body(exc.message, exc.code)
        return Response(body, status=exc.status_code)

    if isinstance(exc, pydantic.ValidationError):
        body = error_body("Validation failed", "VALIDATION_ERROR", pydantic_errors(exc))
        return Response(body, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)
    if response is not None:
        detail = response.data
        if isinstance(detail, dict) and "detail" in detail:
            response.data = error_body(str(detail["detail"]), getattr(exc, "default_code", None))
        elif isinstance(detail, (dict, list)):
            errors = detail if isinstance(detail, list) else [{"field": k, "message": v} for k, v in detail.items()]
            response.data = error_body("Validation failed", "VALIDATION_ERROR", errors)
        else:
            response.data = error_body(str(detail))
        return response

    view = context.get("view")
    logger.exception(
        "unhandled error",
        extra={"view": type(view).__name__ if view else None},
    )
    err = InternalError()
    return Response(error_body(err.message, err.code), status=err.status_code)
