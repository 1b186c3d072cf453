"""Exception-to-response mapping for the HTTP surface."""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError
from protean.integrations.fastapi import register_exception_handlers

from ordering.order.errors import CourierMismatchError, OrderStatusConflictError

logger = structlog.get_logger(__name__)


async def courier_mismatch_handler(request: Request, exc: CourierMismatchError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": str(exc), "code": "COURIER_MISMATCH"})


async def status_conflict_handler(request: Request, exc: OrderStatusConflictError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={
            "error": str(exc),
            "code": "STATUS_CONFLICT",
            "expected_status": exc.expected,
            "current_status": exc.actual,
        },
    )


async def object_not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    detail = exc.args[0] if exc.args else "Not found"
    return JSONResponse(status_code=404, content={"error": jsonable_encoder(detail)})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_error_handlers(app: FastAPI) -> None:
    """Install protean's handlers plus the ordering-specific ones."""
    register_exception_handlers(app)
    app.add_exception_handler(ObjectNotFoundError, object_not_found_handler)
    app.add_exception_handler(CourierMismatchError, courier_mismatch_handler)
    app.add_exception_handler(OrderStatusConflictError, status_conflict_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
