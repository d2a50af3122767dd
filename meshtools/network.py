"""Host/port endpoints and TCP reachability checks."""

from __future__ import annotations

import socket
from dataclasses import dataclass

_TIMEOUT_SECONDS = 5.0


@dataclass
class HostPort:
    """An address and port pair."""

    address: str
    port: int

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"


@dataclass
class Endpoint:
    """A named endpoint with optional internal and external addresses."""

    name: str = ""
    internal: HostPort | None = None
    external: HostPort | None = None


@dataclass
class MockOptions:
    """Replaces real connections: only desired_endpoint counts as reachable."""

    desired_endpoint: str = ""


def tcp_check(host_port: HostPort, mock: MockOptions | None = None) -> bool:
    """Return whether a TCP connection to host_port can be opened."""
    if mock is not None:
        return mock.desired_endpoint == str(host_port)
    try:
        with socket.create_connection(
            (host_port.address, host_port.port), timeout=_TIMEOUT_SECONDS
        ):
            return True
    except (OSError, ValueError):
        return False