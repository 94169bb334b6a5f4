import logging
from enum import Enum

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    # Also covers "exists but you are not a member", so non-members
    # cannot tell whether a project exists.
    NOT_FOUND = "NOT_FOUND"
    INVALID_BODY = "INVALID_BODY"
    SERVER_ERROR = "SERVER_ERROR"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    USER_ALREADY_REGISTERED = "USER_ALREADY_REGISTERED"
    EMAIL_OR_PASSWORD_INVALID = "EMAIL_OR_PASSWORD_INVALID"


STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: ErrorCode.INVALID_BODY,
    status.HTTP_401_UNAUTHORIZED: ErrorCode.NOT_AUTHENTICATED,
    status.HTTP_403_FORBIDDEN: ErrorCode.NOT_AUTHENTICATED,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.NOT_FOUND,
    422: ErrorCode.INVALID_BODY,
}


class APIError(HTTPException):
    """HTTPException carrying one of the envelope error codes."""

    def __init__(self, status_code: int, code: ErrorCode, headers: dict | None = None):
        super().__init__(status_code=status_code, detail=code.value, headers=headers)
        self.code = code


def not_found() -> APIError:
    return APIError(status.HTTP_404_NOT_FOUND, ErrorCode.NOT_FOUND)


def invalid_body() -> APIError:
    return APIError(status.HTTP_400_BAD_REQUEST, ErrorCode.INVALID_BODY)


def server_error() -> APIError:
    return APIError(status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.SERVER_ERROR)


def error_response(status_code: int, code: ErrorCode, headers: dict | None = None):
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "code": code.value},
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = getattr(exc, "code", None)
    if not isinstance(code, ErrorCode):
        code = STATUS_CODES.get(exc.status_code, ErrorCode.SERVER_ERROR)
    return error_response(exc.status_code, code, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.debug("Invalid body on %s %s: %s", request.method, request.url.path, exc.errors())
    return error_response(status.HTTP_400_BAD_REQUEST, ErrorCode.INVALID_BODY)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.SERVER_ERROR)


def init_app(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
