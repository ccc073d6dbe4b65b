"""Error taxonomy shared by the services and its mapping onto HTTP responses.

Services raise the subclasses of :class:`ServiceError`; the handlers installed
by :func:`install_exception_handlers` turn them into a JSON body of the form
``{"error": <category>, "message": <text>}``. Unexpected failures are logged
with their traceback and answered with a generic message only.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Internal server error"


class ServiceError(Exception):
    category = "unexpected"
    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__name__


class InvalidArgumentError(ServiceError):
    category = "invalid_argument"
    status_code = 400


class NotFoundError(ServiceError):
    category = "not_found"
    status_code = 404


class ConflictError(ServiceError):
    category = "conflict"
    status_code = 409


class UnauthorizedError(ServiceError):
    category = "unauthorized"
    status_code = 401


class PayloadTooLargeError(ServiceError):
    category = "payload_too_large"
    status_code = 413


class UnexpectedError(ServiceError):
    pass


class StorageError(UnexpectedError):
    """A database or blob storage operation failed."""


def error_response(status_code: int, category: str, message: str) -> ORJSONResponse:
    return ORJSONResponse(status_code=status_code, content={"error": category, "message": message})


async def _service_error_handler(request: Request, exc: ServiceError) -> ORJSONResponse:
    if isinstance(exc, UnexpectedError):
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        return error_response(exc.status_code, exc.category, GENERIC_FAILURE_MESSAGE)
    return error_response(exc.status_code, exc.category, exc.message)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(x) for x in first.get("loc", ()) if x not in {"body", "path", "query"})
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return error_response(400, InvalidArgumentError.category, message)


_HTTP_CATEGORIES = {
    400: InvalidArgumentError.category,
    401: UnauthorizedError.category,
    404: NotFoundError.category,
    405: "method_not_allowed",
    409: ConflictError.category,
    413: PayloadTooLargeError.category,
}


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> ORJSONResponse:
    if exc.status_code >= 500:
        category = UnexpectedError.category
    else:
        category = _HTTP_CATEGORIES.get(exc.status_code, "http_error")
    response = error_response(exc.status_code, category, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _unhandled_error_handler(request: Request, exc: Exception) -> ORJSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, UnexpectedError.category, GENERIC_FAILURE_MESSAGE)


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
