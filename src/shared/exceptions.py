"""
Error types raised by services and the handlers that render them.

Every error leaves the API as ``{code, message, details?, correlation_id?}``;
status and default message come from ``ERROR_CODES``.
"""
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException

from src.shared.error_codes import ERROR_CODES
from src.shared.logging import get_logger

logger = get_logger(__name__)

Details = Optional[Dict[str, Any]]


def http_status_for(code: str) -> int:
    return int(ERROR_CODES.get(code, {}).get("http", status.HTTP_500_INTERNAL_SERVER_ERROR))


def message_for(code: str) -> str:
    return str(ERROR_CODES.get(code, {}).get("message", code))


class DomainError(Exception):
    """Raised by application services; never raise ``HTTPException`` below the routes."""

    code: str = "domain_error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Details = None,
    ) -> None:
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.message = message or message_for(self.code)
        self.details = details
        super().__init__(self.message)

    @classmethod
    def from_code(cls, code: str, *, details: Details = None, message: str = "") -> "DomainError":
        """Build an error whose status and message come from the catalog entry for ``code``."""
        return cls(message, code=code, status_code=http_status_for(code), details=details)


class ValidationError(DomainError):
    code = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class BusinessRuleError(DomainError):
    code = "business_rule_violation"


class UnauthorizedError(DomainError):
    code = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(DomainError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(DomainError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class UpstreamError(DomainError):
    """A tenant's agent endpoint failed or answered with a non-2xx status."""

    code = "upstream_error"
    status_code = status.HTTP_502_BAD_GATEWAY


class CryptoError(DomainError):
    code = "crypto_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Details = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {"code": code, "message": message}
    if details:
        body["details"] = jsonable_encoder(details)
    correlation_id = getattr(request.state, "correlation_id", None)
    if correlation_id:
        body["correlation_id"] = correlation_id
    return JSONResponse(status_code=status_code, content=body, headers=headers)


_CODE_BY_STATUS: Dict[int, str] = {}
for _code, _entry in ERROR_CODES.items():
    _CODE_BY_STATUS.setdefault(int(_entry["http"]), _code)


async def _on_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    return error_response(request, exc.status_code, exc.code, exc.message, exc.details)


async def _on_validation_error(request: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if hasattr(exc, "errors") else []
    return error_response(
        request,
        http_status_for("validation_error"),
        "validation_error",
        message_for("validation_error"),
        {"errors": errors},
    )


async def _on_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    code = _CODE_BY_STATUS.get(exc.status_code, "internal_error")
    detail = exc.detail
    if isinstance(detail, dict):
        message, details = message_for(code), detail
    elif detail:
        message, details = str(detail), {"detail": detail}
    else:
        message, details = message_for(code), None
    return error_response(request, exc.status_code, code, message, details, headers=exc.headers)


async def _on_unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=request.url.path, error_type=type(exc).__name__)
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        message_for("internal_error"),
        {"type": type(exc).__name__},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, _on_domain_error)
    app.add_exception_handler(RequestValidationError, _on_validation_error)
    app.add_exception_handler(PydanticValidationError, _on_validation_error)
    app.add_exception_handler(HTTPException, _on_http_exception)
    app.add_exception_handler(Exception, _on_unhandled)
