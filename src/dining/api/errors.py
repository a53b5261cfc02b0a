"""Translation of domain failures into HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

from dining.shared.errors import (
    EmptyCart,
    TableUnavailable,
    TransactionFailed,
    Unauthenticated,
    Unauthorized,
)

# Most specific first: several classes share a base
_STATUS_BY_ERROR = (
    (EmptyCart, 400),
    (TableUnavailable, 400),
    (ValidationError, 422),
    (Unauthorized, 403),
    (InvalidOperationError, 422),
    (ObjectNotFoundError, 404),
)


def _messages(exc) -> dict:
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return messages
    return {"detail": [str(messages or exc)]}


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    for error_cls, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return JSONResponse(
                status_code=status_code,
                content={"error": type(exc).__name__, "errors": _messages(exc)},
            )
    raise exc


async def unauthenticated_handler(request: Request, exc: Unauthenticated) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "Unauthenticated", "detail": str(exc)})


async def transaction_failed_handler(request: Request, exc: TransactionFailed) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": "TransactionFailed", "detail": str(exc), "retryable": exc.retryable},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(Unauthenticated, unauthenticated_handler)
    app.add_exception_handler(TransactionFailed, transaction_failed_handler)
    app.add_exception_handler(ValidationError, domain_error_handler)
    app.add_exception_handler(InvalidOperationError, domain_error_handler)
    app.add_exception_handler(ObjectNotFoundError, domain_error_handler)
