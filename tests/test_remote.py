import socket
import time

import pytest

from hamsdr.remote import RemoteConsole


def _poll_until(console, predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        console.poll()
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _recv_until(sock, suffix, timeout=3.0):
    sock.settimeout(timeout)
    data = b""
    while not data.endswith(suffix):
        chunk = sock.recv(4096)
        if not chunk:
            break
        data += chunk
    return data


def test_query_line_calls_query():
    labels = []
    console = RemoteConsole(port=0, query=lambda label: labels.append(label) or "")
    console.handle_line("?FREQ\r\n")
    assert labels == ["FREQ"]


def test_command_line_calls_execute():
    commands = []
    console = RemoteConsole(port=0, execute=commands.append)
    console.handle_line("freq 7074000\r\nignored")
    assert commands == ["freq 7074000"]


def test_empty_line_does_nothing():
    calls = []
    console = RemoteConsole(port=0, query=calls.append, execute=calls.append)
    console.handle_line("\r\n")
    console.handle_line("")
    assert calls == []


def test_poll_before_start():
    with pytest.raises(RuntimeError):
        RemoteConsole(port=0).poll()


def test_session_round_trip():
    commands = []
    answers = {"MODE": "USB"}
    with RemoteConsole(
        port=0, query=answers.get, execute=commands.append, banner="sBitx test"
    ) as console:
        client = socket.create_connection(("127.0.0.1", console.port))
        try:
            assert _poll_until(console, lambda: console.connected)
            greeting = _recv_until(client, b"sBitx test\r\n")
            assert greeting.startswith(b"\x1b[1;1H")
            assert greeting.endswith(b"sBitx test\r\n")

            client.sendall(b"?MODE\n")
            reply = b""
            deadline = time.monotonic() + 3.0
            client.settimeout(0.05)
            while not reply.endswith(b"\n") and time.monotonic() < deadline:
                console.poll()
                try:
                    reply += client.recv(4096)
                except socket.timeout:
                    pass
            assert reply == b"USB\n"

            client.sendall(b"tx on\r\n")
            assert _poll_until(console, lambda: commands == ["tx on"])
        finally:
            client.close()
        assert _poll_until(console, lambda: not console.connected)


def test_write_without_client_is_harmless():
    console = RemoteConsole(port=0)
    console.write("hello\n")
    assert console.connected is False