"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, Optional

logger = logging.getLogger("ledger.http")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


# Ledger errors

class LedgerValidationError(AppException):
    """Raised when journal lines are malformed (negative, both sides, or empty)."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_LEDGER_VALIDATION",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details
        )


class UnbalancedEntryError(LedgerValidationError):
    """Raised when total debits do not equal total credits."""

    def __init__(self, debit_pence: int, credit_pence: int):
        super().__init__(
            message=f"Unbalanced journal entry: {debit_pence} != {credit_pence}",
            details={"debit_pence": debit_pence, "credit_pence": credit_pence}
        )
        self.error_code = "ERR_LEDGER_UNBALANCED"


class UnknownAccountCodeError(LedgerValidationError):
    """Raised when a line references a code missing from the business's chart of accounts."""

    def __init__(self, account_code: str, business_id: Optional[int] = None):
        super().__init__(
            message=f"Account not found for code {account_code}",
            details={"account_code": account_code, "business_id": business_id}
        )
        self.error_code = "ERR_LEDGER_UNKNOWN_ACCOUNT"


class ChartOfAccountsNotSeededError(AppException):
    """Raised when posting to a business that has no chart of accounts yet."""

    def __init__(self, business_id: int):
        super().__init__(
            message=(
                f"Business {business_id} has no chart of accounts. "
                "Run ensure_chart_of_accounts before posting journal entries."
            ),
            error_code="ERR_LEDGER_COA_MISSING",
            status_code=status.HTTP_409_CONFLICT,
            details={"business_id": business_id}
        )


class JournalWriteError(AppException):
    """Raised when a journal entry could not be persisted; nothing was written."""

    def __init__(self, message: str = "Failed to persist journal entry", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_LEDGER_WRITE",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": exc.errors()
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s: %s", type(exc).__name__, exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
