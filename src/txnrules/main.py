from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from txnrules import __version__
from txnrules.api.middleware.error_handler import (
    handle_generic_error,
    handle_integrity_error,
    handle_rule_service_error,
    handle_validation_error,
)
from txnrules.api.middleware.logging import RequestLoggingMiddleware
from txnrules.api.v1 import router as v1_router
from txnrules.api.v1.health import router as health_router
from txnrules.config import settings
from txnrules.core.exceptions import RuleServiceError
from txnrules.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(settings.log_level, json_format=settings.log_json)
    yield
    # Shutdown


def create_app() -> FastAPI:
    app = FastAPI(
        title="Transaction Rules API",
        description="User-authored categorization rules for bank transactions",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers (order matters - most specific first)
    app.add_exception_handler(RuleServiceError, handle_rule_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_generic_error)

    # Register routers
    app.include_router(health_router)
    app.include_router(v1_router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "txnrules.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
