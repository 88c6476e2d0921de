"""Where an authorization check was requested from."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestInfo:
    """HTTP request details recorded alongside a decision."""

    endpoint: str | None = None
    method: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
