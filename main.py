"""
Payment Bridge - Main Application Entry Point

This module initializes the FastAPI application and sets up the core routing.
The bridge creates bank accounts and credit cards on Stripe, verifies bank
account ownership and legal identity, and records every charge and transfer
in the record storage service.
"""

import structlog
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from api import routes
from api.middleware import log_api_entry
from core.dependencies import clear_settings, get_settings, init_settings
from core.logging import configure_logging
from core.metrics import init_metrics
from core.settings import Settings
from core.tracing import init_tracer
from db.session import init_db
from db.storage import RecordNotFoundError
from payments.exceptions import (
    BridgeError,
    ConfigurationError,
    IdentityPendingError,
    IdentityStatusMissingError,
    IdentityUnverifiedError,
    ProcessorError,
    UnverifiedBankAccountError,
    VerificationError,
)

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI application startup and shutdown events."""
    init_settings()
    settings = get_settings()

    init_tracer(settings.OTEL_SERVICE_NAME)
    init_db(settings)
    log.info("app.started", environment=settings.ENVIRONMENT)

    yield
    clear_settings()


app = FastAPI(
    title="Payment Bridge",
    description="""
    ## Stripe Payment Bridge

    Creates and verifies funding sources on Stripe and records every payment.

    ### Key Features:
    - **Bank Accounts**: Paired account/customer creation from bank tokens
    - **Micro-deposit Verification**: Confirms bank account ownership
    - **Identity Verification**: Legal-entity details and identity documents
    - **Charges & Transfers**: Charge a bank account or card, or route funds to another bank account
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

FastAPIInstrumentor.instrument_app(app)

init_metrics(app)

app.middleware("http")(log_api_entry)


# Bridge errors map to status codes by kind; anything else is a 500
ERROR_STATUS = [
    (RecordNotFoundError, 404),
    (UnverifiedBankAccountError, 409),
    (IdentityPendingError, 409),
    (IdentityUnverifiedError, 422),
    (IdentityStatusMissingError, 502),
    (VerificationError, 400),
    (ProcessorError, 402),
    (ConfigurationError, 500),
]


@app.exception_handler(BridgeError)
async def bridge_exception_handler(request: Request, exc: BridgeError):
    status_code = next(
        (code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500
    )
    log.warning(
        "api.bridge_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        status=status_code,
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    log.error("api.unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc)},
    )


@app.get("/")
async def root():
    """Root endpoint providing API information."""
    return {
        "name": "Payment Bridge",
        "version": "1.0.0",
        "api_documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_spec": "/openapi.json",
        },
        "endpoints": {
            "bank_accounts": "/api/v1/bank-accounts - Create, verify and charge bank accounts",
            "credit_cards": "/api/v1/credit-cards - Create and charge credit cards",
            "transfers": "/api/v1/transfers - Move funds into a bank account",
            "payments": "/api/v1/payments/{id} - Payment records",
            "health": "/health - Health check endpoint",
            "metrics": "/metrics - Prometheus metrics",
        },
    }


@app.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint to verify API status."""
    db_type = (
        "PostgreSQL" if settings.DATABASE_URL.startswith("postgresql") else "SQLite"
    )
    return {
        "status": "ok",
        "app_name": settings.APP_NAME,
        "database": db_type,
        "environment": settings.ENVIRONMENT,
    }


# Include routers under a single versioned prefix
API_PREFIX = "/api/v1"

app.include_router(routes.router, prefix=API_PREFIX)


def main():
    configure_logging()
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
