# devcamper/core/errors.py
import logging
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from google.api_core import exceptions as gcp_exceptions

logger = logging.getLogger(__name__)


class ErrorResponse(Exception):
    """Error carrying the message and HTTP status returned to the client."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def error_envelope(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def error_response_handler(request: Request, exc: ErrorResponse):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_envelope(exc.message, exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
        messages.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg"))
    return error_envelope(", ".join(messages), status.HTTP_400_BAD_REQUEST)


async def firestore_error_handler(request: Request, exc: gcp_exceptions.GoogleAPICallError):
    if isinstance(exc, gcp_exceptions.NotFound):
        return error_envelope("Resource not found", status.HTTP_404_NOT_FOUND)
    if isinstance(exc, (gcp_exceptions.InvalidArgument, gcp_exceptions.FailedPrecondition)):
        return error_envelope(exc.message, status.HTTP_400_BAD_REQUEST)
    logger.error("Firestore call failed on %s %s: %s", request.method, request.url.path, exc)
    return error_envelope("Server Error", status.HTTP_500_INTERNAL_SERVER_ERROR)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_envelope("Server Error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_error_handlers(app):
    app.add_exception_handler(ErrorResponse, error_response_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(gcp_exceptions.GoogleAPICallError, firestore_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
