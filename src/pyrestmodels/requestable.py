"""Action routing and the single-flight request lifecycle.

:class:`Requestable` is the capability shared by models and collections: it
resolves an action name (``fetch``, ``save``, ``update``...) into an HTTP
method and a path, performs the call through a :class:`Transport`, tracks
the ``loading`` flag and captures validation errors.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, ClassVar

from pyrestmodels._constants import BODY_METHODS, DEFAULT_METHODS, VALIDATION_ERROR_CODE
from pyrestmodels._transport import RestResponse, Transport
from pyrestmodels._values import get_path
from pyrestmodels.exceptions import (
    RestConcurrentRequestError,
    RestConfigError,
    RestError,
    RestHttpError,
    RestMethodNotFoundError,
    RestRouteNotFoundError,
    RestTransportError,
    RestValidationError,
)
from pyrestmodels.routing import Route, resolve_route, resource_name

_logger = logging.getLogger(__name__)

ValidationErrors = dict[str, Any]


class Requestable:
    """Base capability for anything that talks to a REST resource.

    Subclasses customise routing declaratively::

        class Todo(Model):
            methods = {"archive": "POST"}
            routes = {"archive": Route(keyed=True, suffix="/archive")}

    ``methods`` and ``routes`` are merged over :meth:`default_methods` and
    :meth:`default_routes`, the class-level values winning.
    """

    methods: ClassVar[Mapping[str, str]] = {}
    routes: ClassVar[Mapping[str, Route | str]] = {}
    validation_error_code: ClassVar[int] = VALIDATION_ERROR_CODE

    _default_transport: ClassVar[Transport | None] = None

    def __init__(self, *, transport: Transport | None = None) -> None:
        self._transport = transport
        self._loading = False
        self._validation_errors: ValidationErrors = {}

    # ------------------------------------------------------------------
    # Transport binding
    # ------------------------------------------------------------------

    @classmethod
    def use_transport(cls, transport: Transport | None) -> None:
        """Set the default transport for this class and its subclasses."""
        cls._default_transport = transport

    def resolve_transport(self) -> Transport:
        transport = self._transport or type(self)._default_transport
        if transport is None:
            raise RestConfigError(
                f"No transport bound to {type(self).__name__}. "
                "Pass transport=..., call use_transport() or RestClient.bind()."
            )
        return transport

    @property
    def transport(self) -> Transport | None:
        return self._transport or type(self)._default_transport

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def name(self) -> str:
        """Resource segment used by default routes (``TodoItem`` -> ``todo-items``)."""
        return resource_name(type(self).__name__)

    def base_path(self) -> str:
        """Prefix prepended to every route of this resource."""
        return ""

    @property
    def key(self) -> Any:
        return None

    def default_methods(self) -> Mapping[str, str]:
        return DEFAULT_METHODS

    def default_routes(self) -> Mapping[str, Route | str]:
        return {}

    @property
    def merged_methods(self) -> dict[str, str]:
        return {**self.default_methods(), **self.methods}

    @property
    def merged_routes(self) -> dict[str, Route | str]:
        return {**self.default_routes(), **self.routes}

    def resolve_action(self, action: str) -> tuple[str, str]:
        """Return ``(method, url)`` for *action* or raise a route error."""
        routes = self.merged_routes
        methods = self.merged_methods
        if action not in routes:
            raise RestRouteNotFoundError(f"The route for the '{action}' action does not exist.", action=action)
        if action not in methods:
            raise RestMethodNotFoundError(f"The method for the '{action}' action does not exist.", action=action)
        url = self.base_path() + resolve_route(routes[action], self, action=action)
        return methods[action].upper(), url

    # ------------------------------------------------------------------
    # Request state
    # ------------------------------------------------------------------

    @property
    def loading(self) -> bool:
        """Whether a request is in flight on this instance."""
        return self._loading

    @property
    def validation_errors(self) -> ValidationErrors:
        """Field -> messages map from the last request (empty after success)."""
        return self._validation_errors

    @validation_errors.setter
    def validation_errors(self, errors: Mapping[str, Any]) -> None:
        self._validation_errors = self.map_validation_errors(dict(errors))

    def errors(self, path: str, default: list[str] | None = None) -> list[str]:
        """Validation messages for *path*, or *default* when there are none."""
        found = get_path(self._validation_errors, path)
        if found is None:
            return list(default) if default is not None else []
        return list(found) if isinstance(found, (list, tuple)) else [found]

    def first_error(self, path: str, default: str = "") -> str:
        messages = self.errors(path)
        return str(messages[0]) if messages else default

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def map_success_response(self, response: RestResponse, action: str) -> RestResponse:
        """Adjust a successful response before it is applied. Identity by default."""
        return response

    def map_error_response(self, error: RestError, action: str) -> RestError:
        """Adjust a failure before it is raised. Identity by default."""
        return error

    def map_validation_errors(self, errors: ValidationErrors) -> ValidationErrors:
        """Adjust captured validation errors. Expects Laravel's ``errors`` shape by default."""
        return errors

    # ------------------------------------------------------------------
    # Request
    # ------------------------------------------------------------------

    def ensure_idle(self, action: str) -> None:
        """Raise :class:`RestConcurrentRequestError` while a request is in flight."""
        if self._loading:
            _logger.debug("Rejecting '%s' on %s: request already in flight", action, type(self).__name__)
            raise RestConcurrentRequestError(
                f"{type(self).__name__} is busy with another request",
                action=action,
            )

    async def request(self, action: str, data: Mapping[str, Any] | None = None) -> RestResponse:
        """Perform *action* with *data* and return the mapped response.

        *data* is sent as a JSON body for POST/PUT/PATCH and as query
        parameters otherwise. Only one request may be in flight per
        instance; a second call while :attr:`loading` raises
        :class:`RestConcurrentRequestError`.
        """
        self.ensure_idle(action)

        method, url = self.resolve_action(action)
        transport = self.resolve_transport()
        payload = dict(data) if data else {}

        self._loading = True
        self.validation_errors = {}
        try:
            if method in BODY_METHODS:
                response = await transport.send(method, url, json_body=payload)
            else:
                response = await transport.send(method, url, params=payload)
        except RestTransportError as exc:
            error: RestError = exc
            if isinstance(exc, RestHttpError) and exc.status_code == self.validation_error_code:
                body = exc.data if isinstance(exc.data, Mapping) else {}
                self.validation_errors = body.get("errors") or {}
                _logger.debug("Validation failed for '%s' on %s: %s", action, url, list(self._validation_errors))
                error = RestValidationError(
                    f"Validation failed for {method} {url}",
                    status_code=exc.status_code,
                    errors=self._validation_errors,
                    data=exc.data,
                    method=method,
                    endpoint=url,
                )
            mapped = self.map_error_response(error, action)
            if mapped is exc:
                raise
            raise mapped from exc
        finally:
            self._loading = False

        return self.map_success_response(response, action)
