"""Development payment gateway built with FastAPI.

Stands in for the hosted payment provider the storefront talks to through
``HttpPaymentsClient``: it opens payment intents and hands back their
client secrets. ``Idempotency-Key`` makes intent creation safe to retry.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Annotated, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from pydantic import BaseModel, Field, constr, field_validator
from pythonjsonlogger import jsonlogger
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from repo import IdempotencyKey, PaymentsRepo, canonical_hash, get_session, init_db

logger = logging.getLogger("payments")
if not logger.handlers:
    h = logging.StreamHandler()
    h.setFormatter(jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"))
    logger.addHandler(h)
    logger.setLevel(logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Payments Service", lifespan=lifespan)

Currency = constr(pattern=r"^[A-Za-z]{3}$")


class IntentRequest(BaseModel):
    """Body of ``POST /payment_intents``.

    Attributes:
        amount: Positive amount in minor currency units (cents).
        currency: Three-letter ISO code, stored lower-case.
        metadata: Free-form string pairs echoed back on the intent.
    """

    amount: int = Field(gt=0)
    currency: Currency
    metadata: dict[str, str] = {}

    @field_validator("currency")
    @classmethod
    def lower_currency(cls, v: str) -> str:
        return v.lower()


class IntentResponse(BaseModel):
    id: str
    client_secret: str
    amount: int
    currency: str
    status: str
    metadata: dict[str, str] = {}


def _session():
    with get_session() as s:
        yield s


def _to_response(intent) -> IntentResponse:
    return IntentResponse(
        id=intent.id,
        client_secret=intent.client_secret,
        amount=intent.amount,
        currency=intent.currency,
        status=intent.status,
        metadata=intent.meta or {},
    )


@app.get("/health")
def health(s: Session = Depends(_session)):
    try:
        s.execute(text("select 1"))
        db_ok = True
    except SQLAlchemyError:
        logger.warning("health check: database unreachable", exc_info=True)
        db_ok = False
    return {"ok": db_ok}


@app.post("/payment_intents", response_model=IntentResponse)
def create_payment_intent(
    req: IntentRequest,
    idempotency_key: Annotated[Optional[str], Header(alias="Idempotency-Key")] = None,
    s: Session = Depends(_session),
):
    """Open a payment intent.

    With an ``Idempotency-Key``, the first request creates the intent and
    remembers it; retries with the same payload get the same intent back.

    Raises:
        HTTPException: 409 when the key was used with a different payload.
    """
    repo = PaymentsRepo(s)

    if not idempotency_key:
        intent = repo.create_intent(req.amount, req.currency, req.metadata)
        s.commit()
        return _to_response(intent)

    payload_hash = canonical_hash(req.model_dump())
    try:
        s.add(IdempotencyKey(key=idempotency_key, request_hash=payload_hash))
        s.commit()
    except IntegrityError:
        s.rollback()

    rec = repo.lock_key(idempotency_key)
    if rec is None:
        raise HTTPException(status_code=500, detail="IDEMPOTENCY_LOOKUP_ERROR")
    if rec.request_hash != payload_hash:
        raise HTTPException(status_code=409, detail="IDEMPOTENCY_CONFLICT")
    if rec.intent_id:
        logger.info("intent replayed", extra={"intent_id": rec.intent_id})
        return _to_response(repo.get_intent(rec.intent_id))

    intent = repo.create_intent(req.amount, req.currency, req.metadata)
    rec.intent_id = intent.id
    s.commit()
    logger.info("intent created", extra={"intent_id": intent.id, "amount": intent.amount})
    return _to_response(intent)


@app.get("/payment_intents/{intent_id}", response_model=IntentResponse)
def get_payment_intent(intent_id: str, s: Session = Depends(_session)):
    intent = PaymentsRepo(s).get_intent(intent_id)
    if intent is None:
        raise HTTPException(status_code=404, detail="NOT_FOUND")
    return _to_response(intent)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = rid
    try:
        response = await call_next(request)
    finally:
        logger.info("request handled", extra={"request_id": rid, "path": request.url.path, "method": request.method})
    response.headers["X-Request-ID"] = rid
    return response


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "9002")),
        workers=int(os.getenv("UVICORN_WORKERS", "1")),
        log_level=os.getenv("LOG_LEVEL", "info"),
    )
