"""
Error taxonomy for the API.

Only ApiError subclasses cross a request boundary. Best-effort writes
(alerts, chat history, profile lookups) never raise; they log and carry on.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

INTERNAL_ERROR_MESSAGE = "Error interno del servidor"


class ApiError(Exception):
    """Base exception rendered as {"error": message}."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidRequest(ApiError):
    status_code = 400


class Unauthenticated(ApiError):
    status_code = 401


class GenerationFailed(ApiError):
    """The completion provider failed or returned no text."""

    def __init__(self, message: str, provider_body: str = ""):
        self.provider_body = provider_body
        super().__init__(message)


class NotificationFailed(ApiError):
    """The SMS provider (real path) or the notification insert failed."""


class ServiceUnavailable(ApiError):
    status_code = 503


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=CORS_HEADERS)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
    return error_response(exc.message, exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        loc = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        detail = errors[0].get("msg", "invalid value")
        message = f"Solicitud inválida: {loc} {detail}".strip() if loc else f"Solicitud inválida: {detail}"
    else:
        message = "Solicitud inválida"
    return error_response(message, InvalidRequest.status_code)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(INTERNAL_ERROR_MESSAGE, 500)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
