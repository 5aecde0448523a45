# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Domain error taxonomy and the FastAPI handlers that render it.

Services raise the subclasses below; routers let them propagate.  Every
error reaches the client as ``{"message": ...}`` with the class's status
code, so messages here are part of the public contract.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from core.logger import logger


class SummitError(Exception):
    """Base class.  ``message`` is shown to the client verbatim."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# -- 400 -------------------------------------------------------------------


class ValidationError(SummitError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ConflictError(SummitError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "User already exists"


class InvalidCredentialsError(SummitError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid credentials"


class InvalidCodeError(SummitError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid verification code"


class AlreadyVerifiedError(SummitError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "User already verified"


class UnverifiedError(SummitError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Please verify your email first"


# -- 401 / 403 / 404 -------------------------------------------------------


class UnauthorizedError(SummitError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class ForbiddenError(SummitError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(SummitError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


# -- 500 -------------------------------------------------------------------


class DeliveryError(SummitError):
    default_message = "Failed to send verification email"


class StorageError(SummitError):
    default_message = "Storage unavailable"


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _message(exc: SummitError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def _summit_error_handler(request: Request, exc: SummitError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _message(exc)


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return _message(StorageError())


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Report the first offending field by name, e.g. "Missing field: email"
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "body"
    if first.get("type") == "missing":
        return _message(ValidationError(f"Missing field: {field}"))
    return _message(ValidationError(f"Invalid field: {field}"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SummitError, _summit_error_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
