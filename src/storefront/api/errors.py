"""HTTP mapping for the storefront error taxonomy.

Protean's own errors (``ValidationError`` → 400, ``ObjectNotFoundError`` →
404) are mapped by ``protean.integrations.fastapi``; the handlers here cover
the checkout and webhook outcomes.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from storefront.errors import (
    IdempotencyConflict,
    InsufficientStockError,
    NotFoundError,
    SignatureError,
    TransientStorageError,
    VariationRequired,
)

logger = structlog.get_logger(__name__)


def _error(status_code: int, message: str, **details) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "success": False, **details})


async def request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: ARG001
    return _error(400, "Invalid request", details=jsonable_errors(exc))


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]


async def not_found_error(request: Request, exc: NotFoundError) -> JSONResponse:  # noqa: ARG001
    return _error(404, exc.message)


async def variation_required_error(request: Request, exc: VariationRequired) -> JSONResponse:  # noqa: ARG001
    return _error(400, exc.message, product_id=exc.product_id)


async def insufficient_stock_error(request: Request, exc: InsufficientStockError) -> JSONResponse:  # noqa: ARG001
    return _error(
        400,
        exc.message,
        product_id=exc.product_id,
        variation_id=exc.variation_id,
        size=exc.size,
        available=exc.available,
        requested=exc.requested,
    )


async def idempotency_conflict_error(request: Request, exc: IdempotencyConflict) -> JSONResponse:  # noqa: ARG001
    return _error(409, "This request is already being processed")


async def signature_error(request: Request, exc: SignatureError) -> JSONResponse:
    logger.warning("webhook_signature_rejected", path=request.url.path, error=exc.message)
    return _error(400, "Webhook signature verification failed")


async def transient_storage_error(request: Request, exc: TransientStorageError) -> JSONResponse:
    logger.error("transient_storage_error", path=request.url.path, error=exc.message)
    return _error(503, "Service temporarily unavailable, please retry")


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(RequestValidationError, request_validation_error)
    app.add_exception_handler(NotFoundError, not_found_error)
    app.add_exception_handler(VariationRequired, variation_required_error)
    app.add_exception_handler(InsufficientStockError, insufficient_stock_error)
    app.add_exception_handler(IdempotencyConflict, idempotency_conflict_error)
    app.add_exception_handler(SignatureError, signature_error)
    app.add_exception_handler(TransientStorageError, transient_storage_error)
