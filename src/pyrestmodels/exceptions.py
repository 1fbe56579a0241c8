"""Custom exception hierarchy for pyrestmodels."""

from __future__ import annotations

from typing import Any


class RestError(Exception):
    """Base exception for all pyrestmodels errors."""


class RestConfigError(RestError):
    """Invalid or missing configuration (no transport, no model class, ...)."""


class RestRouteError(RestConfigError):
    """An action cannot be resolved into an HTTP call."""

    def __init__(self, message: str, *, action: str = "") -> None:
        self.action = action
        super().__init__(message)


class RestRouteNotFoundError(RestRouteError):
    """No route is configured for the requested action."""


class RestMethodNotFoundError(RestRouteError):
    """No HTTP method is configured for the requested action."""


class RestTransportError(RestError):
    """HTTP-level failure (network error, timeout, undecodable body)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        method: str = "",
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.method = method
        self.endpoint = endpoint
        super().__init__(message)


class RestHttpError(RestTransportError):
    """The server answered with a non-2xx status.

    ``data`` holds the decoded response body (``None`` when empty or not JSON).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        data: Any = None,
        method: str = "",
        endpoint: str = "",
    ) -> None:
        self.data = data
        super().__init__(message, status_code=status_code, method=method, endpoint=endpoint)


class RestNotFoundError(RestHttpError):
    """The requested resource does not exist (HTTP 404)."""


class RestValidationError(RestHttpError):
    """The server rejected the payload with field validation errors.

    The mapped ``errors`` dict (field -> list of messages) is also stored on
    the instance that issued the request as ``validation_errors``, so both
    structured access and exception handling work.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        errors: dict[str, Any] | None = None,
        data: Any = None,
        method: str = "",
        endpoint: str = "",
    ) -> None:
        self.errors = errors or {}
        super().__init__(message, status_code=status_code, data=data, method=method, endpoint=endpoint)


class RestConcurrentRequestError(RestError):
    """A request was issued while another one is in flight on the same instance."""

    def __init__(self, message: str, *, action: str = "") -> None:
        self.action = action
        super().__init__(message)


class RestUnsupportedOperationError(RestError):
    """The operation is not available for this kind of resource."""
