"""Client configuration for pyrestmodels."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pyrestmodels._constants import USER_AGENT
from pyrestmodels.exceptions import RestConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class RestConfig:
    """Transport configuration.

    Parameters
    ----------
    base_url : str
        Prefix prepended to every resolved route (e.g.
        ``"https://api.example.com"``). Resources may add their own
        ``base_path()`` on top of it.
    timeout : float
        Total request timeout in seconds.
    headers : Mapping[str, str]
        Extra headers sent with every request (e.g. ``Authorization``).
    user_agent : str
        ``User-Agent`` header value.
    api_trace_enabled : bool
        Log redacted request and response bodies at DEBUG level.
    """

    base_url: str = ""
    timeout: float = 30.0
    headers: Mapping[str, str] = dataclasses.field(default_factory=dict)
    user_agent: str = USER_AGENT
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise RestConfigError(f"timeout must be positive, got {self.timeout}")
        # Routes always start with "/", so a trailing slash would double up.
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_env(cls, **overrides: Any) -> RestConfig:
        """Create configuration from environment variables.

        Reads ``RESTMODELS_BASE_URL``, ``RESTMODELS_TIMEOUT``,
        ``RESTMODELS_USER_AGENT`` and ``RESTMODELS_API_TRACE_ENABLED``.
        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("RESTMODELS_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url

        user_agent = env.get("RESTMODELS_USER_AGENT")
        if user_agent is not None:
            config_kwargs["user_agent"] = user_agent

        timeout_env = env.get("RESTMODELS_TIMEOUT")
        if timeout_env is not None and "timeout" not in overrides:
            try:
                config_kwargs["timeout"] = float(timeout_env)
            except ValueError as exc:
                raise RestConfigError(f"RESTMODELS_TIMEOUT is not a number: {timeout_env!r}") from exc

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("RESTMODELS_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
