"""HTTP transport built on aiohttp."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import aiohttp
from pydantic import BaseModel, ConfigDict, Field

from pyrestmodels._constants import BODY_METHODS, NOT_FOUND_CODE
from pyrestmodels._redact import redact_for_log, redact_headers
from pyrestmodels.config import RestConfig
from pyrestmodels.exceptions import RestHttpError, RestNotFoundError, RestTransportError

_logger = logging.getLogger(__name__)


class RestResponse(BaseModel):
    """A successful (2xx) HTTP response with its decoded JSON body."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    data: Any = None
    status: int = 200
    headers: dict[str, str] = Field(default_factory=dict)
    method: str = ""
    url: str = ""


class Transport(Protocol):
    """Structural transport interface used by requestable resources.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete. Implementations
    return a :class:`RestResponse` on 2xx and raise :class:`RestHttpError`
    (or a subclass) otherwise.
    """

    async def send(
        self,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> RestResponse:
        ...


def http_error(
    message: str,
    *,
    status_code: int,
    data: Any = None,
    method: str = "",
    endpoint: str = "",
) -> RestHttpError:
    """Build the most specific :class:`RestHttpError` for *status_code*."""
    cls = RestNotFoundError if status_code == NOT_FOUND_CODE else RestHttpError
    return cls(message, status_code=status_code, data=data, method=method, endpoint=endpoint)


def encode_params(params: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """Flatten query parameters into ``(key, value)`` pairs aiohttp accepts.

    Booleans become ``true``/``false``, sequences repeat the key and
    ``None`` values are dropped.
    """
    pairs: list[tuple[str, str]] = []
    if not params:
        return pairs
    for key, value in params.items():
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            pairs.extend((key, _encode_scalar(item)) for item in value if item is not None)
        elif value is not None:
            pairs.append((key, _encode_scalar(value)))
    return pairs


def _encode_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _decode_body(text: str) -> Any:
    if not text.strip():
        return None
    return json.loads(text)


class HttpTransport:
    """JSON-over-HTTP transport bound to a :class:`RestConfig`."""

    def __init__(self, config: RestConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    @property
    def config(self) -> RestConfig:
        return self._config

    def _headers(self) -> dict[str, str]:
        return {
            "accept": "application/json",
            "user-agent": self._config.user_agent,
            **self._config.headers,
        }

    async def send(
        self,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> RestResponse:
        method = method.upper()
        full_url = f"{self._config.base_url}{url}"
        kwargs: dict[str, Any] = {"headers": self._headers()}
        if method in BODY_METHODS:
            kwargs["json"] = json_body if json_body is not None else {}
        else:
            kwargs["params"] = encode_params(params)

        _logger.debug("%s %s", method, full_url)
        if self._config.api_trace_enabled:
            _logger.debug("Request headers: %s", redact_headers(kwargs["headers"]))
            _logger.debug("Request payload: %s", redact_for_log(json_body if method in BODY_METHODS else params))

        timeout = aiohttp.ClientTimeout(total=self._config.timeout)
        try:
            async with self._http.request(method, full_url, timeout=timeout, **kwargs) as resp:
                status = resp.status
                headers = dict(resp.headers)
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise RestTransportError(
                f"{method} {url} failed: {exc}",
                method=method,
                endpoint=url,
            ) from exc
        except asyncio.TimeoutError as exc:
            raise RestTransportError(
                f"{method} {url} timed out after {self._config.timeout}s",
                method=method,
                endpoint=url,
            ) from exc

        try:
            data = _decode_body(text)
        except json.JSONDecodeError as exc:
            if 200 <= status < 300:
                raise RestTransportError(
                    f"Invalid JSON from {method} {url}: {text[:200]}",
                    status_code=status,
                    method=method,
                    endpoint=url,
                ) from exc
            data = None

        _logger.debug("%s %s -> HTTP %s", method, full_url, status)
        if self._config.api_trace_enabled:
            _logger.debug("Response payload: %s", redact_for_log(data))

        if not 200 <= status < 300:
            raise http_error(
                f"HTTP {status} from {method} {url}: {text[:200]}",
                status_code=status,
                data=data,
                method=method,
                endpoint=url,
            )

        return RestResponse(data=data, status=status, headers=headers, method=method, url=full_url)
