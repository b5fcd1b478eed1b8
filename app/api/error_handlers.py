"""Maps domain errors to HTTP responses with a uniform error body."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.domain.errors import (
    AuthError,
    ConfigurationError,
    DomainError,
    DuplicateOrderIdError,
    GatewayError,
    InvalidBookingTransitionError,
    NotFoundError,
    OptimisticLockError,
    ProviderError,
    SignatureError,
    UnknownStatusError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first match wins
ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (SignatureError, status.HTTP_400_BAD_REQUEST),
    (UnknownStatusError, status.HTTP_400_BAD_REQUEST),
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (OptimisticLockError, status.HTTP_409_CONFLICT),
    (InvalidBookingTransitionError, status.HTTP_409_CONFLICT),
    (DuplicateOrderIdError, status.HTTP_409_CONFLICT),
    (GatewayError, status.HTTP_502_BAD_GATEWAY),
    (ProviderError, status.HTTP_502_BAD_GATEWAY),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: DomainError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(exc: DomainError) -> dict:
    return {"success": False, "message": exc.message, "code": exc.code}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Request failed with domain error",
        extra={"path": request.url.path, "method": request.method, "code": exc.code, "status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content=error_body(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
