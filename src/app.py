"""TillPoint FastAPI application.

Serves the till's checkout sessions, the menu, order history and the M-Pesa
callback endpoint from one process, so callbacks reach the sessions waiting
on them through the in-process notification channel. Each request runs in
the domain context picked by its URL prefix.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.domain import ordering
from payments.domain import payments

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
ordering.init()
payments.init()

from catalogue.api import menu_router  # noqa: E402
from ordering.api.routes import order_router, session_router  # noqa: E402
from ordering.session import reset_session_registry  # noqa: E402
from payments.api.routes import mpesa_router, payment_router  # noqa: E402
from shared.config import get_settings  # noqa: E402
from shared.db import get_engine, setup_db  # noqa: E402
from shared.exceptions import GatewayError, OrderRecordingError, StoreError, first_message  # noqa: E402
from shared.logging import add_context, clear_context, configure_logging  # noqa: E402

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/sessions": ordering,
    "/orders": ordering,
    "/mpesa": payments,
    "/payments": payments,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.env)
    if settings.create_tables:
        setup_db(get_engine())
    logger.info("TillPoint started", env=settings.env)
    yield
    # Open sessions stop listening; their pending payments stay for reconciliation
    with ordering.domain_context():
        reset_session_registry()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="TillPoint API",
    description="Point-of-sale checkout with cash and M-Pesa payments",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the correct Protean domain context for each request."""
    clear_context()
    add_context(method=request.method, path=request.url.path)
    domain = _resolve_domain(request.url.path)
    if domain is not None:
        with domain.domain_context():
            response = await call_next(request)
        return response
    # No domain for this path, e.g. health check or docs
    return await call_next(request)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"error": first_message(exc.messages), "messages": exc.messages})


@app.exception_handler(ObjectNotFoundError)
async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": first_message(exc.messages)})


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"error": exc.message, "retryable": exc.retryable})


@app.exception_handler(OrderRecordingError)
async def order_recording_error_handler(request: Request, exc: OrderRecordingError) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": str(exc), "reference": exc.correlation_id, "order_id": exc.order_id},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"error": str(exc)})


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(menu_router)
app.include_router(session_router)
app.include_router(order_router)
app.include_router(mpesa_router)
app.include_router(payment_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "env": get_settings().env})
