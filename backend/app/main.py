"""FastAPI application entry point"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import AppError
from app.core.logging import setup_logging
from app.core.middleware import setup_cors_middleware, setup_access_log_middleware
from app.core.otel import initialize_otel, instrument_fastapi, instrument_sqlalchemy
from app.db.session import engine, init_db
from app.models import Base  # Import all models to register with Base.metadata

# Import routers
from app.api import checkout, webhooks, premium, monitoring

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    # Startup
    if initialize_otel():
        instrument_sqlalchemy(engine)
        logger.info(f"OpenTelemetry tracing enabled, exporting to {settings.OTEL_EXPORTER_OTLP_ENDPOINT}")
    else:
        logger.info("OpenTelemetry not configured - running without distributed tracing")

    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("STRIPE_WEBHOOK_SECRET is not set - all webhooks will be rejected")

    logger.info("Initializing database...")
    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down...")


# Create FastAPI app
app = FastAPI(
    title="FindTutor Payments",
    description="Checkout, webhook reconciliation and premium status for the tutoring marketplace",
    version="1.0.0",
    lifespan=lifespan
)

# Instrument FastAPI with OpenTelemetry (no-op without a tracer provider)
instrument_fastapi(app)

setup_cors_middleware(app)
setup_access_log_middleware(app)

# Include routers
app.include_router(checkout.router)
app.include_router(webhooks.router)
app.include_router(premium.router)
app.include_router(monitoring.router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Map application errors onto their HTTP status"""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are caller errors (400)"""
    errors = exc.errors()
    fields = ", ".join(".".join(str(part) for part in err.get("loc", ())[1:]) for err in errors)
    logger.warning(f"Invalid request to {request.url.path}: {fields}")
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid or missing fields: {fields}" if fields else "Invalid request"}
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )
