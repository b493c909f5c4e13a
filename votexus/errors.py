"""API errors and the handlers that turn them into JSON responses."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class HttpError(Exception):
    """Failure carrying a message and the HTTP status code to answer with."""

    def __init__(self, message: str = "An unknown error occurred.", code: int = 500):
        self.message = message
        self.code = code
        super().__init__(self.message)


class MediaError(Exception):
    """The media host rejected an upload or destroy call."""


def _error_body(message: str, code: int) -> JSONResponse:
    return JSONResponse(status_code=code, content={"message": message})


async def http_error_handler(request: Request, exc: HttpError):
    return _error_body(exc.message, exc.code)


async def not_found_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return _error_body(f"Not Found - {request.url.path}", 404)
    return _error_body(str(exc.detail), exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return _error_body("Invalid input.", 422)
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid input.")
    return _error_body(f"{field}: {message}" if field else message, 422)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_body("An unknown error occurred.", 500)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HttpError, http_error_handler)
    app.add_exception_handler(StarletteHTTPException, not_found_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
