from relaychat.protocol import ClientHandle
from relaychat.registry import ClientRegistry

from conftest import FakeTransport


def make_client(port=50000):
    return ClientHandle(FakeTransport(port=port), "10.0.0.1", port)


def test_add_and_remove_track_size():
    registry = ClientRegistry()
    clients = [make_client(50000 + i) for i in range(5)]
    for expected, client in enumerate(clients, start=1):
        assert registry.add(client)
        assert len(registry) == expected

    for removed, client in enumerate(clients[:3], start=1):
        assert registry.remove(client)
        assert len(registry) == 5 - removed

    assert registry.snapshot() == tuple(clients[3:])


def test_add_rejects_duplicate_connection_id():
    registry = ClientRegistry()
    client = make_client()
    assert registry.add(client)
    assert not registry.add(client)
    assert len(registry) == 1


def test_remove_is_idempotent():
    registry = ClientRegistry()
    client = make_client()
    registry.add(client)
    assert registry.remove(client)
    assert not registry.remove(client)
    assert len(registry) == 0


def test_membership_is_by_identity_not_address():
    registry = ClientRegistry()
    first = make_client(50000)
    again = make_client(50000)          # same address:port, new connection
    registry.add(first)

    assert first in registry
    assert again not in registry
    assert not registry.remove(again)
    assert "10.0.0.1:50000" not in registry


def test_snapshot_is_stable_while_mutating():
    registry = ClientRegistry()
    clients = [make_client(50000 + i) for i in range(3)]
    for client in clients:
        registry.add(client)

    visited = []
    for client in registry:
        visited.append(client)
        registry.remove(client)

    assert visited == clients
    assert len(registry) == 0


def test_clear_returns_dropped_clients():
    registry = ClientRegistry()
    clients = [make_client(50000 + i) for i in range(2)]
    for client in clients:
        registry.add(client)

    assert registry.clear() == tuple(clients)
    assert len(registry) == 0
