"""Maps domain failures onto HTTP responses.

Every ordering error carries a ``kind``; the status code is chosen from it so
that the same failure is reported the same way by every endpoint. Plain
Protean exceptions raised by the framework itself (field validation, missing
records) are mapped by their class.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import (
    InvalidOperationError,
    InvalidStateError,
    ObjectNotFoundError,
    ProteanException,
    ValidationError,
)

from ordering.errors import ErrorKind

logger = structlog.get_logger(__name__)

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.ILLEGAL_STATE: 409,
}

_KIND_BY_PROTEAN_CLASS = (
    (ValidationError, ErrorKind.INVALID_ARGUMENT),
    (ObjectNotFoundError, ErrorKind.NOT_FOUND),
    (InvalidStateError, ErrorKind.ILLEGAL_STATE),
    (InvalidOperationError, ErrorKind.CONFLICT),
)


def error_kind(exc: ProteanException) -> ErrorKind | None:
    kind = getattr(exc, "kind", None)
    if isinstance(kind, ErrorKind):
        return kind
    for cls, mapped in _KIND_BY_PROTEAN_CLASS:
        if isinstance(exc, cls):
            return mapped
    return None


async def handle_domain_error(request: Request, exc: ProteanException) -> JSONResponse:
    kind = error_kind(exc)
    status_code = STATUS_BY_KIND.get(kind, 500)
    messages = getattr(exc, "messages", None)
    if not isinstance(messages, dict):
        messages = {"error": [str(messages if messages is not None else exc)]}

    log = logger.warning if status_code < 500 else logger.error
    log("Request failed", path=request.url.path, kind=kind.value if kind else None, status=status_code)

    return JSONResponse(
        status_code=status_code,
        content={"error": kind.value if kind else "internal", "messages": messages},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProteanException, handle_domain_error)
