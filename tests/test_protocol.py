import re
from datetime import datetime

from relaychat.protocol import (
    ClientHandle, ClientState, LogEntry, decode_text, encode_line,
    format_client_message, welcome_text,
)

from conftest import FakeTransport


def test_welcome_text_carries_server_time():
    assert welcome_text(datetime(2024, 3, 5, 7, 8, 9)) == "Welcome — server time: 2024-03-05 07:08:09"
    assert re.fullmatch(r"Welcome — server time: \d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", welcome_text())


def test_decode_trims_and_replaces_invalid_utf8():
    assert decode_text(b"  hello world \r\n") == "hello world"
    assert decode_text(b" \t\r\n ") == ""
    assert decode_text(b"bad \xff byte") == "bad � byte"


def test_encode_line_appends_newline_only():
    assert encode_line("héllo") == "héllo\n".encode("utf-8")
    assert encode_line("a\nb") == b"a\nb\n"


def test_handle_from_transport():
    client = ClientHandle.from_transport(FakeTransport("192.0.2.10", 64233))
    assert client.info == "192.0.2.10:64233"
    assert client.state is ClientState.CONNECTED
    assert format_client_message(client, "hi") == "[192.0.2.10:64233] hi"


def test_handles_get_unique_ids_and_compare_by_identity():
    a = ClientHandle.from_transport(FakeTransport())
    b = ClientHandle.from_transport(FakeTransport())
    assert a.conn_id != b.conn_id
    assert a != b
    assert a == a


def test_write_skips_closing_or_failing_transport():
    transport = FakeTransport()
    client = ClientHandle.from_transport(transport)
    assert client.write(b"one\n")

    transport.fail_writes = True
    assert not client.write(b"two\n")

    transport.fail_writes = False
    transport.closing = True
    assert not client.write(b"three\n")
    assert transport.chunks == [b"one\n"]


def test_close_marks_handle_closed():
    transport = FakeTransport()
    client = ClientHandle.from_transport(transport)
    client.close()
    client.close()
    assert transport.closing
    assert client.state is ClientState.CLOSED
    assert not client.connected


def test_log_entry_render():
    entry = LogEntry("Server stopped", timestamp=datetime(2024, 1, 1, 23, 59, 58))
    assert entry.render() == "[23:59:58] Server stopped"
    assert not entry.is_error
