"""
Exception handlers mapping the error taxonomy onto HTTP.

- Request validation (missing/ill-typed fields) -> 400
- ValidationError, UnknownTokenError -> 400 with the reason
- Any other LettercastError -> 500 with a generic message; the cause
  chain goes to the log, never to the client
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lettercast.core.errors import (
    CLIENT_ERRORS,
    LettercastError,
    UnexpectedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Something went wrong. Please try again later."


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        field = error["loc"][-1] if error["loc"] else None
        errors.append({"field": field, "message": error["msg"]})

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "Validation failed. Please check the provided data.",
            "errors": errors,
        },
    )


async def lettercast_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, CLIENT_ERRORS):
        content: dict[str, object] = {"detail": str(exc)}
        if isinstance(exc, ValidationError) and exc.field:
            content["field"] = exc.field
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)

    context = exc.context if isinstance(exc, UnexpectedError) else str(exc)
    logger.error(
        "%s %s failed: %s",
        request.method,
        request.url.path,
        context,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": GENERIC_SERVER_ERROR},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(
        RequestValidationError,
        request_validation_exception_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(LettercastError, lettercast_exception_handler)
