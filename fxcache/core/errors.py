from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette import status
import logging

logger = logging.getLogger("fxcache.errors")


class FixerError(Exception):
    """Base class for failures talking to the rate provider."""


class TransportError(FixerError):
    """Network, timeout or HTTP status failure."""


class MalformedResponse(FixerError):
    """Body is not JSON, not an object, or lacks the success indicator."""


class UnknownCurrency(LookupError):
    def __init__(self, code: str):
        super().__init__(f"unknown currency '{code}'")
        self.code = code


def not_found_handler(request: Request, exc):  # type: ignore
    detail = getattr(exc, "detail", None)
    status_code = getattr(exc, "status_code", status.HTTP_404_NOT_FOUND)
    if status_code != status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=status_code,
            content={"error": "http_error", "detail": detail},
        )
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "not_found",
            "detail": detail
            if detail and detail != "Not Found"
            else f"No route for {request.method} {request.url.path}",
        },
    )


def unknown_currency_handler(request: Request, exc: UnknownCurrency):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "unknown_currency", "detail": str(exc)},
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
