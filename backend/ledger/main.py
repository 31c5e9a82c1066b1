"""
FastAPI Application Entry Point.

This is the main application file for the POS Ledger Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from backend.ledger.core.config import settings
from backend.ledger.api.v1.router import router as api_v1_router
from backend.ledger.db.session import engine, Base
from backend.ledger.core.observability import ObservabilityMiddleware, configure_logging
from backend.ledger.core.redis_client import ping_redis
from backend.ledger.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from backend.ledger.models.business import Business
from backend.ledger.models.account import Account
from backend.ledger.models.journal import JournalEntry, JournalLine
from backend.ledger.models.sales_invoice import SalesInvoice, SalesInvoiceLine, SalesPayment
from backend.ledger.models.purchase_invoice import PurchaseInvoice, PurchasePayment
from backend.ledger.models.expense import Expense, ExpensePayment
from backend.ledger.models.audit_log import AuditLog

configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.
    
    Creates database tables on startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Double-entry ledger and financial statements for retail point of sale",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    
    The statement cache is optional, so a Redis outage reports
    "degraded" rather than failing the check.
    
    Returns:
        dict: Status and application information
    """
    redis_ok = await ping_redis()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "statement_cache": "up" if redis_ok else "degraded",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.
    
    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to POS Ledger Backend API",
        "docs": "/docs",
        "health": "/health",
    }
