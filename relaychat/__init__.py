"""relaychat – a minimal TCP broadcast relay.

Importing this package gives access to :class:`relaychat.RelayServer` and
:class:`relaychat.Settings` so the relay can be embedded in another
application, or started via ``python -m relaychat``.
"""

from .protocol import ClientHandle, ClientState, LogEntry  # noqa: F401  (re‑export)
from .registry import ClientRegistry  # noqa: F401
from .server import BindFailure, RelayError, RelayServer  # noqa: F401
from .settings import Settings  # noqa: F401

__all__ = [
    "BindFailure",
    "ClientHandle",
    "ClientRegistry",
    "ClientState",
    "LogEntry",
    "RelayError",
    "RelayServer",
    "Settings",
]
