"""Checkout exceptions following RFC 9457 Problem Details for HTTP APIs."""

from typing import Any, Dict, Optional
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import uuid
from datetime import datetime, timezone


logger = logging.getLogger(__name__)

PROBLEM_TYPE_BASE = "https://example.com/problems"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt

    ``detail`` is the sanitized, caller-facing message. Anything passed as
    ``internal_detail`` is only ever logged server-side.
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        internal_detail: Optional[str] = None,
    ):
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.extensions = extensions or {}
        self.internal_detail = internal_detail

        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if self.detail:
            self.problem_details["detail"] = self.detail

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )


class ValidationError(ProblemDetailsException):
    """Client-caused input error detected before any side effect."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        errors: Optional[Dict[str, Any]] = None,
        internal_detail: Optional[str] = None,
    ):
        extensions = {}
        if errors:
            extensions["errors"] = errors

        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri=f"{PROBLEM_TYPE_BASE}/validation-error",
            extensions=extensions,
            internal_detail=internal_detail,
        )


class PricingMismatchError(ValidationError):
    """The client-quoted total does not match the server-computed total."""

    def __init__(self, quoted_total: int, actual_total: int):
        self.quoted_total = quoted_total
        self.actual_total = actual_total
        super().__init__(
            detail="Pricing error",
            internal_detail=f"quoted={quoted_total}, actual={actual_total}",
        )
        self.problem_details["code"] = "PRICING_MISMATCH"


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {"resource_type": resource_type}
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri=f"{PROBLEM_TYPE_BASE}/resource-not-found",
            extensions=extensions,
        )


class PaymentRequiredError(ProblemDetailsException):
    """The payment gateway declined the charge."""

    def __init__(self, message: str, order_id: Optional[int] = None):
        extensions = {"code": "PAYMENT_DECLINED", "retryable": False}
        super().__init__(
            status_code=402,
            title="Payment Required",
            detail=message,
            type_uri=f"{PROBLEM_TYPE_BASE}/payment-declined",
            extensions=extensions,
            internal_detail=f"order_id={order_id}" if order_id is not None else None,
        )


class InternalServerError(ProblemDetailsException):
    """Exception for internal server errors."""

    def __init__(
        self,
        detail: str = "Server error",
        error_id: Optional[str] = None,
        internal_detail: Optional[str] = None,
    ):
        if not error_id:
            error_id = str(uuid.uuid4())

        extensions = {
            "error_id": error_id,
            "timestamp": _utc_timestamp(),
        }

        super().__init__(
            status_code=500,
            title="Internal Server Error",
            detail=detail,
            type_uri=f"{PROBLEM_TYPE_BASE}/internal-server-error",
            extensions=extensions,
            internal_detail=internal_detail,
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    if exc.internal_detail:
        logger.warning(
            "Request failed",
            extra={
                "path": request.url.path,
                "status_code": exc.status_code,
                "detail": exc.detail if isinstance(exc.detail, str) else exc.problem_details.get("detail"),
                "internal_detail": exc.internal_detail,
            }
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={**exc.problem_details, "instance": request.url.path},
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework-raised HTTP errors (404 routes, 405 methods) as Problem Details."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "type": f"about:blank#{exc.status_code}",
            "title": str(exc.detail),
            "status": exc.status_code,
            "instance": request.url.path,
        },
        headers=getattr(exc, "headers", None),
        media_type="application/problem+json",
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed query or path parameters as 400 Problem Details."""
    error = ValidationError(
        detail="Invalid request parameters",
        errors={".".join(str(part) for part in err["loc"]): err["msg"] for err in exc.errors()},
    )
    return await problem_details_handler(request, error)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception",
        extra={"path": request.url.path, "error_id": error_id, "error": str(exc)},
        exc_info=exc,
    )

    problem_details = {
        "type": f"{PROBLEM_TYPE_BASE}/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "detail": "Server error",
        "instance": request.url.path,
        "error_id": error_id,
        "timestamp": _utc_timestamp(),
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
        media_type="application/problem+json",
    )
