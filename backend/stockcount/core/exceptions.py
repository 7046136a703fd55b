"""
Error responses with safe messages.

Client errors (400/409) carry specific details since the caller caused them.
Ownership failures return a generic 404 so a caller cannot probe for other
users' rows. Unexpected failures return a generic 500; the underlying error
text is attached outside production only.
"""
import logging
from typing import Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from stockcount.core.config import settings

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal error occurred."


class ApiError:
    """Factory for the HTTP errors raised by route handlers."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        """
        Generic 404 that doesn't confirm resource existence.

        Used both when the row is missing and when it belongs to someone else.

        Example:
            if not inventory:
                raise ApiError.not_found("Inventory")
        """
        if reason:
            logger.warning(f"Not found / not owned: {resource} - {reason}")
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def unauthorized(detail: str = "Not authenticated", reason: str = "") -> HTTPException:
        """401 for missing, invalid or expired credentials."""
        logger.warning(f"Unauthorized: {reason or detail}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def forbidden(reason: str = "") -> HTTPException:
        """403 for role failures (e.g. a team member calling an admin endpoint)."""
        logger.warning(f"Forbidden access: {reason}")
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation / business rule errors.

        Examples: "Admins cannot delete themselves", "Invalid status transition"
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        """
        409 for uniqueness conflicts.
        Example: "Item already exists in this inventory"
        """
        logger.info(f"Conflict: {detail}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )

    @staticmethod
    def too_many_requests(retry_after: int) -> HTTPException:
        logger.warning("Login throttle triggered")
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many attempts. Try again in {retry_after} seconds.",
            headers={"Retry-After": str(retry_after)},
        )


def server_error_body(original_error: Optional[Exception] = None) -> dict:
    """Body of a 500 response. Logs the real error; exposes its text only outside production."""
    if original_error is not None:
        logger.error(
            f"Internal server error: {type(original_error).__name__}: {original_error}",
            exc_info=original_error,
        )
    else:
        logger.error("Internal server error occurred")

    body = {"detail": INTERNAL_ERROR_MESSAGE}
    if original_error is not None and settings.ENVIRONMENT != "production":
        body["error"] = str(original_error)
    return body


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed or missing fields as 400 instead of FastAPI's default 422."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    detail = f"{location}: {message}" if location else message
    logger.info(f"Validation failed on {request.method} {request.url.path}: {detail}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": detail, "errors": [_plain_error(e) for e in errors]},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=server_error_body(exc),
    )


def _plain_error(error: dict) -> dict:
    # ctx may hold exception objects that are not JSON serialisable
    return {
        "loc": [str(part) for part in error.get("loc", ())],
        "msg": error.get("msg", ""),
        "type": error.get("type", ""),
    }


class ConflictError(Exception):
    """Raised by services when a write would break a uniqueness rule. Routes map it to 409."""
