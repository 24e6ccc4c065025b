#!/usr/bin/env python3
"""Registry of connected clients.

Only the event loop mutates it, so there are no locks. Fan-out always walks
:meth:`ClientRegistry.snapshot` so handlers may add or remove clients while a
broadcast is in progress.
"""

from __future__ import annotations

from typing import Dict, Iterator, Tuple

from .protocol import ClientHandle


class ClientRegistry:
    """Connected clients keyed by connection id (insertion ordered)."""

    def __init__(self) -> None:
        self._clients: Dict[int, ClientHandle] = {}

    def add(self, client: ClientHandle) -> bool:
        """Register ``client``; False if its connection id is already present."""
        if client.conn_id in self._clients:
            return False
        self._clients[client.conn_id] = client
        return True

    def remove(self, client: ClientHandle) -> bool:
        """Drop ``client``; False (and no change) when it was not registered."""
        current = self._clients.get(client.conn_id)
        if current is not client:
            return False
        del self._clients[client.conn_id]
        return True

    def clear(self) -> Tuple[ClientHandle, ...]:
        """Empty the registry and return what it held."""
        dropped = self.snapshot()
        self._clients.clear()
        return dropped

    def snapshot(self) -> Tuple[ClientHandle, ...]:
        return tuple(self._clients.values())

    def __contains__(self, client: object) -> bool:
        if not isinstance(client, ClientHandle):
            return False
        return self._clients.get(client.conn_id) is client

    def __iter__(self) -> Iterator[ClientHandle]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._clients)
