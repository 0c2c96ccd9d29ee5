"""
Business errors raised by the service layer.

They are plain HTTPExceptions with a fixed status code, so FastAPI renders
them as {"detail": "..."} without any extra handler. Anything else that
escapes a route is turned into a 500 by handle_unexpected().
"""

import functools
from typing import Callable, Optional

from fastapi import HTTPException, status

from eventreg.core.logging import get_logger

logger = get_logger(__name__)


class ServiceError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class InvalidStateError(ServiceError):
    default_detail = "Event is not open for registration"


class CapacityExceededError(ServiceError):
    default_detail = "Event is at full capacity"


class ConflictError(ServiceError):
    # reported as 400 like the other registration rule violations
    default_detail = "Conflict"


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Access denied"


class BadRequestError(ServiceError):
    pass


def handle_unexpected(message: str, on_error: Optional[Callable[[], None]] = None):
    """
    Wrap an async route so that any non-HTTP exception is logged and
    reported as a 500 with a fixed message. on_error, if given, is called
    before the 500 is raised (e.g. to count the failure).
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception:
                logger.exception("unhandled_error", operation=func.__name__)
                if on_error is not None:
                    on_error()
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=message,
                )

        return wrapper

    return decorator
