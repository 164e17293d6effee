"""Shared dependencies for route handlers."""

from fastapi import HTTPException, Request, status

from mastery.core.errors import MasteryError, NotFoundError, ValidationError
from mastery.db.database import Store


def get_store(request: Request) -> Store:
    """Return the Store owned by the application."""
    return request.app.state.store


def to_http_exception(error: MasteryError) -> HTTPException:
    """Map an engine error to an HTTP error with its message as detail."""
    if isinstance(error, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(error))
