import pytest

from relaychat.server import RelayServer


class FakeTransport:
    """Stands in for asyncio.Transport; records every write as one chunk."""

    def __init__(self, host="10.0.0.1", port=50000):
        self.peer = (host, port)
        self.chunks = []
        self.closing = False
        self.fail_writes = False

    def get_extra_info(self, name, default=None):
        return self.peer if name == "peername" else default

    def write(self, data):
        if self.fail_writes:
            raise BrokenPipeError("peer went away")
        self.chunks.append(data)

    def is_closing(self):
        return self.closing

    def close(self):
        self.closing = True

    @property
    def received(self):
        return [chunk.decode("utf-8") for chunk in self.chunks]

    def reset(self):
        self.chunks.clear()


@pytest.fixture
def entries():
    return []


@pytest.fixture
def server(entries):
    return RelayServer(log_sink=entries.append)


@pytest.fixture
def connect(server):
    """connect(host, port) -> (ClientHandle, FakeTransport)"""
    def _connect(host="10.0.0.1", port=50000):
        transport = FakeTransport(host, port)
        return server.on_incoming_connection(transport), transport
    return _connect
