#!/usr/bin/env python3
"""Single‑threaded TCP broadcast relay:

* Accepts clients on one port and greets each with the server time
* Relays every text message to all *other* connected clients
* Announces joins / departures
* No persistence – everything lives in RAM until process exits.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from .protocol import (
    DEFAULT_HOST, DEFAULT_PORT, DEPARTED_TEMPLATE, ENCODING, JOINED_TEMPLATE,
    OPERATOR_MSG_TEMPLATE, ClientHandle, ClientState, LogEntry, decode_text,
    encode_line, format_client_message, welcome_text,
)
from .registry import ClientRegistry
from .util import LOG, local_ipv4_addresses

LogSink = Callable[[LogEntry], None]


class RelayError(Exception):
    """Base class for relay errors."""


class BindFailure(RelayError):
    """The listening socket could not be opened (port taken, no permission)."""

    def __init__(self, port: int, reason: str) -> None:
        super().__init__(f"cannot listen on port {port}: {reason}")
        self.port = port
        self.reason = reason


class ClientConnection(asyncio.Protocol):
    """Per-socket event handler; forwards loop events to the server."""

    def __init__(self, server: "RelayServer") -> None:
        self.server = server
        self.client: Optional[ClientHandle] = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.client = self.server.on_incoming_connection(transport)

    def data_received(self, data: bytes) -> None:
        if self.client is not None:
            self.server.on_data(self.client, data)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if self.client is not None:
            self.server.on_disconnected(self.client)
            self.client = None


class RelayServer:
    """Event‑driven TCP server / message relay.

    All handlers run on the event loop thread, one at a time, so the registry
    is never touched concurrently.
    """

    def __init__(self, host: str = DEFAULT_HOST, log_sink: Optional[LogSink] = None) -> None:
        # Listening endpoint (0.0.0.0 = every interface)
        self.host = host
        self.port = DEFAULT_PORT

        # ------ runtime state ------
        self.registry = ClientRegistry()
        self.log_sink = log_sink                       # Operator display, if any
        self._server: Optional[asyncio.AbstractServer] = None

    # ================================================================= main ===
    @property
    def listening(self) -> bool:
        return self._server is not None and self._server.is_serving()

    @property
    def bound_port(self) -> Optional[int]:
        """Actual port of the listening socket (differs from ``port`` when 0)."""
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def start(self, port: int = DEFAULT_PORT) -> None:
        """Bind ``host:port`` and start accepting; raises :class:`BindFailure`."""
        self.port = port
        loop = asyncio.get_running_loop()
        try:
            self._server = await loop.create_server(
                lambda: ClientConnection(self), self.host, port,
            )
        except OSError as exc:
            reason = exc.strerror or str(exc)
            self.log_message(f"Server failed to start on port {port}: {reason}", is_error=True)
            raise BindFailure(port, reason) from exc
        self.log_message(f"Server listening on port {self.bound_port}")

    async def serve_forever(self) -> None:
        if self._server is None:
            raise RelayError("server is not started")
        await self._server.serve_forever()

    async def stop(self) -> None:
        """Close the listener and every client without a goodbye."""
        server, self._server = self._server, None
        if server is not None:
            server.close()

        # Emptied first so the connection_lost callbacks that follow are no-ops.
        for client in self.registry.clear():
            client.close()

        if server is not None:
            await server.wait_closed()
            self.log_message("Server stopped")

    # ---------------------------------------------------------------- handlers
    def on_incoming_connection(self, transport: asyncio.BaseTransport) -> ClientHandle:
        client = ClientHandle.from_transport(transport)
        self.registry.add(client)
        self.log_message(f"Client connected: {client.info} - clients: {len(self.registry)}")

        client.write(welcome_text().encode(ENCODING))   # No line terminator
        self.broadcast(JOINED_TEMPLATE.format(client=client.info), exclude=client)
        return client

    def on_data(self, client: ClientHandle, data: bytes) -> None:
        if client not in self.registry:                 # Late read after removal
            return

        text = decode_text(data)
        if not text:                                    # Whitespace only: drop
            return

        message = format_client_message(client, text)
        self.log_message(message)
        self.broadcast(message, exclude=client)

    def on_disconnected(self, client: ClientHandle) -> None:
        if not self.registry.remove(client):
            return
        client.state = ClientState.DISCONNECTING
        self.log_message(f"Client disconnected: {client.info} - remaining: {len(self.registry)}")

        self.broadcast(DEPARTED_TEMPLATE.format(client=client.info))
        client.close()

    # ---------------------------------------------------------------- fan-out
    def broadcast(self, text: str, exclude: Optional[ClientHandle] = None) -> int:
        """Send ``text`` to **all** connected clients except ``exclude``.

        Failed writes are neither retried nor fatal; they are just left out of
        the returned delivery count.
        """
        data = encode_line(text)
        sent = 0
        for client in self.registry.snapshot():
            if client is exclude:
                continue
            if client.write(data):
                sent += 1

        if sent:
            self.log_message(f"Message delivered to {sent} client(s)")
        return sent

    def send_operator_message(self, text: str) -> int:
        text = text.strip()
        if not text:
            self.log_message("Type a message to broadcast first")
            return 0
        message = OPERATOR_MSG_TEMPLATE.format(text=text)
        self.log_message(message)
        return self.broadcast(message)

    # ---------------------------------------------------------------- reporting
    def network_info(self) -> str:
        lines = [
            "=== Server network info ===",
            f"Status: {'running' if self.listening else 'stopped'}",
            f"Listening port: {self.port}",
            f"Connected clients: {len(self.registry)}",
            "",
            "Local IPv4 addresses:",
        ]
        addresses = local_ipv4_addresses()
        lines.extend(f"  {addr}" for addr in addresses)
        if not addresses:
            lines.append("  (none found)")

        lines += [
            "",
            "Port forwarding:",
            "1. Open the router admin page (often 192.168.1.1 or 192.168.0.1)",
            "2. Find the 'Port forwarding' or 'Virtual server' section",
            f"3. Add a rule: external port {self.port} -> one of the IPs above,"
            f" internal port {self.port}",
            f"4. Clients connect to your public IP on port {self.port}",
        ]
        return "\n".join(lines)

    def show_network_info(self) -> None:
        self.log_message(self.network_info())

    def log_message(self, text: str, is_error: bool = False) -> LogEntry:
        entry = LogEntry(text, is_error)
        if is_error:
            LOG.error("%s", text)
        else:
            LOG.info("%s", text)
        if self.log_sink is not None:
            self.log_sink(entry)
        return entry
