"""Async client owning the HTTP session used by resources."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pyrestmodels._transport import HttpTransport
from pyrestmodels.config import RestConfig
from pyrestmodels.exceptions import RestError
from pyrestmodels.requestable import Requestable

_logger = logging.getLogger(__name__)


class RestClient:
    """Async context manager that wires resources to an aiohttp session.

    Usage::

        async with RestClient(RestConfig(base_url="https://api.example.com")) as client:
            client.bind(Todo, Todos)
            todos = Todos()
            await todos.fetch({"completed": False})

    A session passed in by the caller is used as-is and left open on exit.
    """

    def __init__(
        self,
        config: RestConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config or RestConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport: HttpTransport | None = None
        self._bound: list[type[Requestable]] = []

    @property
    def config(self) -> RestConfig:
        return self._config

    @property
    def transport(self) -> HttpTransport:
        if self._transport is None:
            raise RestError("Client not initialized. Use 'async with RestClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RestClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        for resource_type in self._bound:
            if resource_type._default_transport is self._transport:
                resource_type.use_transport(None)
        self._bound.clear()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    def bind(self, *resource_types: type[Requestable]) -> None:
        """Make this client's transport the default for *resource_types*.

        Bindings are undone when the client exits.
        """
        transport = self.transport
        for resource_type in resource_types:
            _logger.debug("Binding %s to %s", resource_type.__name__, self._config.base_url or "<relative>")
            resource_type.use_transport(transport)
            self._bound.append(resource_type)
