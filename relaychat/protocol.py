#!/usr/bin/env python3
"""Shared constants, text helpers and the records used by server & console.

Everything that travels over the network is encoded/decoded via the utilities
here so the relay never disagrees with itself on wire‑format details.
"""

from __future__ import annotations       # Postponed annotation evaluation (PEP 563)
import enum
import itertools
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

# --- Network configuration -------------------------------------------------
DEFAULT_HOST: str = "0.0.0.0"   # Listen on every interface
DEFAULT_PORT: int = 8888        # Well‑known port on which the relay listens
ENCODING: str = "utf-8"
LINE_TERMINATOR: str = "\n"     # Appended to every broadcast, never to the welcome

# --- Message templates -------------------------------------------------------
WELCOME_TEMPLATE = "Welcome — server time: {time}"
JOINED_TEMPLATE = "joined: {client}"
DEPARTED_TEMPLATE = "departed: {client}"
CLIENT_MSG_TEMPLATE = "[{client}] {text}"
OPERATOR_MSG_TEMPLATE = "[server] {text}"

WELCOME_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_TIME_FORMAT = "%H:%M:%S"

# --- Text helpers ------------------------------------------------------------

def welcome_text(now: Optional[datetime] = None) -> str:
    """One-shot greeting written to a freshly accepted client."""
    now = now or datetime.now()
    return WELCOME_TEMPLATE.format(time=now.strftime(WELCOME_TIME_FORMAT))


def format_client_message(client: "ClientHandle", text: str) -> str:
    return CLIENT_MSG_TEMPLATE.format(client=client.info, text=text)


def decode_text(data: bytes) -> str:
    """bytes ⟶ trimmed str; invalid UTF‑8 becomes U+FFFD instead of failing."""
    return data.decode(ENCODING, errors="replace").strip()


def encode_line(text: str) -> bytes:
    """str ⟶ UTF‑8 bytes with the line terminator, ready for transport.write()."""
    return (text + LINE_TERMINATOR).encode(ENCODING)

# --- Client records ----------------------------------------------------------

class ClientState(enum.Enum):
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"
    CLOSED = "closed"


_conn_ids = itertools.count(1)


@dataclass(eq=False)
class ClientHandle:
    """Server-side record for one connected peer.

    Equality is identity: a client reconnecting from the same address:port is
    a different handle with a new ``conn_id``.
    """

    transport: Any                    # asyncio.Transport (or a test double)
    address: str
    port: int
    conn_id: int = field(default_factory=lambda: next(_conn_ids))
    state: ClientState = ClientState.CONNECTED

    @classmethod
    def from_transport(cls, transport: Any) -> "ClientHandle":
        peer = transport.get_extra_info("peername") or ("unknown", 0)
        # IPv6 peers come back as a 4-tuple; only host and port matter here.
        return cls(transport, str(peer[0]), int(peer[1]))

    @property
    def info(self) -> str:
        """``address:port`` label used in logs and announcements."""
        return f"{self.address}:{self.port}"

    @property
    def connected(self) -> bool:
        return self.state is ClientState.CONNECTED and not self.transport.is_closing()

    def write(self, data: bytes) -> bool:
        """Queue ``data`` on the transport; False when the write did not happen."""
        if not self.connected:
            return False
        try:
            self.transport.write(data)
        except (OSError, RuntimeError):   # Broken pipe / transport already shut
            return False
        return True

    def close(self) -> None:
        """Release the transport; safe to call more than once."""
        self.state = ClientState.CLOSED
        if not self.transport.is_closing():
            self.transport.close()

    def __repr__(self) -> str:
        return f"<ClientHandle #{self.conn_id} {self.info} {self.state.value}>"

# --- Log records ---------------------------------------------------------------

@dataclass(frozen=True)
class LogEntry:
    """One line of operator-visible activity; never persisted."""

    text: str
    is_error: bool = False
    timestamp: datetime = field(default_factory=datetime.now)

    def render(self) -> str:
        return f"[{self.timestamp.strftime(LOG_TIME_FORMAT)}] {self.text}"
