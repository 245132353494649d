"""Storefront checkout FastAPI application.

Serves cart pricing, order checkout and lifecycle transitions, and the
payment/carrier webhooks, synchronously over HTTP.

Usage:
    uvicorn storefront.app:app --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront import __version__
from storefront.config import get_settings
from storefront.exceptions import (
    AuthenticationRequiredError,
    ConcurrentModificationError,
    CouponNotFoundError,
    InvalidTransitionError,
    OrderNotFoundError,
    PermissionDeniedError,
    ProductNotFoundError,
    StorefrontError,
    TerminalStateError,
    TransitionNotPermittedError,
)
from storefront.ordering.api.routes import cart_router, order_router, payment_router, shipment_router
from storefront.services import get_services
from storefront.utils.logging import add_context, clear_context, configure_logging

configure_logging()

logger = structlog.get_logger(__name__)

# Most specific class first; anything else is a validation/pricing failure
_STATUS_CODES = (
    (AuthenticationRequiredError, 401),
    (PermissionDeniedError, 403),
    (TransitionNotPermittedError, 403),
    (OrderNotFoundError, 404),
    (ProductNotFoundError, 404),
    (CouponNotFoundError, 404),
    (InvalidTransitionError, 409),
    (TerminalStateError, 409),
    (ConcurrentModificationError, 409),
)


def status_code_for(exc: StorefrontError) -> int:
    for error_class, status_code in _STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return 422


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Checkout API",
    description="Cart pricing and the order lifecycle",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Bind a request id to every log line emitted while serving the request."""
    clear_context()
    add_context(request_id=request.headers.get("X-Request-Id") or uuid4().hex, path=request.url.path)
    try:
        return await call_next(request)
    finally:
        clear_context()


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    status_code = status_code_for(exc)
    logger.info("Request rejected", error=type(exc).__name__, status_code=status_code)
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "messages": exc.messages},
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(payment_router)
app.include_router(shipment_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    services = get_services()
    return JSONResponse(
        content={
            "status": "ok",
            "version": __version__,
            "environment": get_settings().environment,
            "adapters": {
                "payment_gateway": type(services.gateway).__name__,
                "carrier": type(services.carrier).__name__,
            },
        }
    )
