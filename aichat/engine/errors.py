from __future__ import annotations

from enum import Enum
from http import HTTPStatus


class APIError(str, Enum):
    """User-visible outcome of a failed request, delivered once via the completion callback."""

    NONE = "none"
    RATE_LIMIT_REACHED = "rate_limit_reached"
    CONTEXT_LIMIT_REACHED = "context_limit_reached"
    CONNECTION_ISSUE = "connection_issue"


def is_success(response_code: int) -> bool:
    return 200 <= response_code < 300


def classify_response(response_code: int) -> APIError | None:
    """Map an HTTP status (or -1 for a transport failure) to an APIError; None on 2xx."""
    if is_success(response_code):
        return None
    if response_code == HTTPStatus.TOO_MANY_REQUESTS:
        return APIError.RATE_LIMIT_REACHED
    if response_code == HTTPStatus.REQUEST_ENTITY_TOO_LARGE:
        return APIError.CONTEXT_LIMIT_REACHED
    return APIError.CONNECTION_ISSUE


def should_return_credential(response_code: int) -> bool:
    """A credential survives any failure except an authentication failure."""
    return not is_success(response_code) and response_code != HTTPStatus.UNAUTHORIZED
