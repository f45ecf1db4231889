"""Exception → HTTP mapping for the Storefront API.

Every failure is reported as ``{"error": <category>, "message": ..., "details": ...}``
so clients can tell "fix your input" from "payment declined" from "try
again" without parsing messages.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

from storefront.exceptions import CheckoutError, EmptyCart, PaymentFailed, PersistenceFailure

logger = structlog.get_logger(__name__)

_CHECKOUT_STATUS_CODES = {
    EmptyCart: 409,
    PaymentFailed: 402,
    PersistenceFailure: 503,
}


def error_response(status_code: int, category: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": category, "message": message, "details": details or {}},
    )


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("Rejected invalid input", path=request.url.path, errors=exc.messages)
    return error_response(400, "validation_error", "Invalid input", exc.messages)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body") or "body"
        details.setdefault(field, []).append(error["msg"])
    logger.info("Rejected malformed request", path=request.url.path, errors=details)
    return error_response(400, "validation_error", "Invalid input", details)


async def handle_not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return error_response(404, "not_found", str(exc))


async def handle_invalid_operation(request: Request, exc: InvalidOperationError) -> JSONResponse:
    return error_response(409, "invalid_operation", str(exc))


async def handle_checkout_error(request: Request, exc: CheckoutError) -> JSONResponse:
    details = {}
    if isinstance(exc, PaymentFailed):
        details = {"method": exc.outcome.method.value, **exc.outcome.errors}
    elif isinstance(exc, PersistenceFailure):
        details = {"paymentReference": exc.payment_reference}

    status_code = _CHECKOUT_STATUS_CODES.get(type(exc), 400)
    logger.warning("Checkout failed", path=request.url.path, category=exc.category, status_code=status_code)
    return error_response(status_code, exc.category, exc.message, details)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(ObjectNotFoundError, handle_not_found)
    app.add_exception_handler(InvalidOperationError, handle_invalid_operation)
    app.add_exception_handler(CheckoutError, handle_checkout_error)
