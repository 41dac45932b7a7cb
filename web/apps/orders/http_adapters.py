"""HTTP payments client with retries, a circuit breaker and context headers.

Concrete ``PaymentsPort`` over ``httpx``. On top of the plain call it adds:

- Request correlation: forwards ``X-Request-ID`` from the ContextVar set by
  the gateway middleware.
- Idempotency: every intent request carries an ``Idempotency-Key`` derived
  from the order id, so a retried call can never open a second intent.
- Retry with exponential backoff on transport errors (timeouts included)
  and 5xx responses.
- A circuit breaker that stops calling an unhealthy gateway and probes it
  again (HALF_OPEN) after a cool-down.

Whatever goes wrong surfaces as ``GatewayError``.
"""

import logging
import threading
import time
from typing import Mapping, Optional

import httpx
from django.conf import settings

from gateway.errors import GatewayError
from gateway.middleware import REQUEST_ID_CTX

from .domain import PaymentIntent, PaymentsPort

logger = logging.getLogger(__name__)


# ---------------- Circuit Breaker ---------------- #

class CircuitOpenError(RuntimeError):
    pass


class CircuitBreaker:
    """Minimal circuit breaker with CLOSED/OPEN/HALF_OPEN states.

    - CLOSED -> OPEN when consecutive failures reach ``fail_threshold``.
    - OPEN -> HALF_OPEN once ``reset_timeout`` seconds have passed.
    - HALF_OPEN lets a single probe through; success closes the breaker,
      failure opens it again.

    Thread-safe via an internal lock.
    """

    def __init__(self, name: str, fail_threshold: int, reset_timeout: float):
        self.name = name
        self.fail_threshold = fail_threshold
        self.reset_timeout = reset_timeout
        self._lock = threading.RLock()
        self._failures = 0
        self._state = "CLOSED"
        self._opened_at = 0.0
        self._probe_in_flight = False

    @property
    def state(self) -> str:
        with self._lock:
            if self._state == "OPEN" and (time.monotonic() - self._opened_at) >= self.reset_timeout:
                self._state = "HALF_OPEN"
                self._probe_in_flight = False
            return self._state

    def before_call(self) -> str:
        """Return the state the call runs under.

        Raises:
            CircuitOpenError: If OPEN, or HALF_OPEN with a probe already out.
        """
        with self._lock:
            st = self.state
            if st == "OPEN":
                raise CircuitOpenError(f"{self.name}: CIRCUIT_OPEN")
            if st == "HALF_OPEN":
                if self._probe_in_flight:
                    raise CircuitOpenError(f"{self.name}: CIRCUIT_HALF_OPEN_BUSY")
                self._probe_in_flight = True
            return st

    def on_success(self):
        with self._lock:
            self._failures = 0
            self._state = "CLOSED"
            self._probe_in_flight = False

    def on_failure(self):
        with self._lock:
            self._failures += 1
            if self._state == "HALF_OPEN" or (self._failures >= self.fail_threshold and self._state != "OPEN"):
                self._state = "OPEN"
                self._opened_at = time.monotonic()
                self._probe_in_flight = False
                logger.warning("circuit opened", extra={"service": self.name, "failures": self._failures})

    def on_finish(self):
        with self._lock:
            if self._state == "HALF_OPEN":
                self._probe_in_flight = False

    def reset(self):
        self.on_success()


payments_breaker = CircuitBreaker(
    "payments",
    getattr(settings, "HTTP_CIRCUIT_FAIL_THRESHOLD", 5),
    getattr(settings, "HTTP_CIRCUIT_RESET_TIMEOUT", 30.0),
)


# ---------------- Helpers ---------------- #

def _request_headers(extra: Optional[dict] = None) -> dict:
    """Base outbound headers: ``X-Request-ID`` when inside a request, plus ``extra``."""
    headers: dict[str, str] = {}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if extra:
        headers.update(extra)
    return headers


def _retry_policy() -> tuple[int, float, float]:
    """Return ``(max_retries, backoff_base_seconds, max_sleep_seconds)``."""
    return (
        getattr(settings, "HTTP_RETRY_MAX", 3),
        getattr(settings, "HTTP_RETRY_BACKOFF_BASE", 0.15),
        getattr(settings, "HTTP_RETRY_MAX_SLEEP", 0.5),
    )


def _should_retry(resp: Optional[httpx.Response], exc: Optional[Exception]) -> bool:
    if exc is not None:
        return True
    return resp is not None and 500 <= resp.status_code < 600


# ---------------- Payments Adapter ---------------- #

class HttpPaymentsClient(PaymentsPort):
    """Payment intents over HTTP (``POST {base_url}/payment_intents``)."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.PAYMENTS_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECS

    def create_intent(self, amount_minor: int, currency: str, metadata: Mapping[str, str]) -> PaymentIntent:
        """Create a payment intent and return its id and client secret.

        Retries transport errors and 5xx up to ``HTTP_RETRY_MAX`` extra
        times. A 4xx answer is final (the gateway rejected the request) and
        does not count against the circuit.

        Raises:
            GatewayError: Circuit open, retries exhausted, timeout,
                rejected request or malformed response.
        """
        payload = {"amount": amount_minor, "currency": currency, "metadata": dict(metadata)}
        extras = {"X-Retry-Count": "0"}
        if metadata.get("order_id"):
            extras["Idempotency-Key"] = f"intent-{metadata['order_id']}"

        try:
            state = payments_breaker.before_call()
        except CircuitOpenError as e:
            raise GatewayError("Payment gateway temporarily unavailable") from e
        extras["X-Circuit-State"] = state
        headers = _request_headers(extras)

        max_retries, backoff, cap = _retry_policy()
        tries = 0
        try:
            with httpx.Client(timeout=self.timeout) as client:
                while True:
                    resp = None
                    exc = None
                    try:
                        resp = client.post(f"{self.base_url}/payment_intents", json=payload, headers=headers)
                    except httpx.RequestError as e:
                        exc = e

                    if resp is not None and 200 <= resp.status_code < 300:
                        payments_breaker.on_success()
                        return self._parse(resp)
                    if resp is not None and 400 <= resp.status_code < 500:
                        payments_breaker.on_success()  # gateway is healthy, it said no
                        raise GatewayError(f"Payment gateway rejected the request ({resp.status_code})")

                    if tries >= max_retries or not _should_retry(resp, exc):
                        payments_breaker.on_failure()
                        logger.error(
                            "payment intent failed",
                            extra={
                                "attempts": tries + 1,
                                "status": resp.status_code if resp is not None else None,
                                "error": type(exc).__name__ if exc else None,
                            },
                        )
                        if isinstance(exc, httpx.TimeoutException):
                            raise GatewayError("Payment gateway timed out") from exc
                        raise GatewayError() from exc

                    tries += 1
                    headers["X-Retry-Count"] = str(tries)
                    logger.info("retrying payment intent", extra={"attempt": tries + 1})
                    time.sleep(min(backoff * (2 ** (tries - 1)), cap))
        finally:
            payments_breaker.on_finish()

    @staticmethod
    def _parse(resp: httpx.Response) -> PaymentIntent:
        try:
            data = resp.json()
            return PaymentIntent(intent_id=str(data["id"]), client_secret=str(data["client_secret"]))
        except (ValueError, KeyError, TypeError) as e:
            raise GatewayError("Malformed payment gateway response") from e
