"""Logging filter that stamps records with the current request id.

Attach ``RequestIdFilter`` to a handler (see ``LOGGING`` in
``gateway.settings``) and formatters can reference ``%(request_id)s``.
"""

from logging import Filter, LogRecord

from .middleware import REQUEST_ID_CTX


class RequestIdFilter(Filter):
    """Copy ``REQUEST_ID_CTX`` onto ``record.request_id`` ("-" outside requests)."""

    def filter(self, record: LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = REQUEST_ID_CTX.get()
        return True
