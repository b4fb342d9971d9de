"""
FastAPI Application Entry Point - Checkout Service
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from storefront.config import settings
from storefront.database import init_db
from storefront.logging_config import configure_logging
from storefront.api import checkout, health, orders, webhooks

configure_logging()
logger = structlog.get_logger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Checkout Service",
    description="Cart checkout, Stripe payment sessions and order reconciliation",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(checkout.router)
app.include_router(webhooks.router)
app.include_router(orders.router)

# Prometheus metrics
Instrumentator().instrument(app).expose(app)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as {"error": ...}"""
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else err.get("msg", "Invalid request"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": ", ".join(messages) or "Invalid request"}
    )


@app.on_event("startup")
def startup_event():
    """Initialize database on startup"""
    logger.info("service_starting", service=settings.SERVICE_NAME)
    init_db()
    logger.info("database_initialized")
    logger.info("service_ready", service=settings.SERVICE_NAME, port=settings.SERVICE_PORT)


@app.on_event("shutdown")
def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("service_stopping", service=settings.SERVICE_NAME)
