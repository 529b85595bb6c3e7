import base64
import socket
import threading

import pytest

from hamsdr.fldigi import FldigiClient, FldigiError, build_request, parse_response


class _Server:
    """Answers each connection with the next canned body and records requests."""

    def __init__(self, bodies):
        self.bodies = list(bodies)
        self.requests = []
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(5)
        self.port = self.sock.getsockname()[1]
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.start()

    def _run(self):
        for body in self.bodies:
            conn, _ = self.sock.accept()
            with conn:
                data = b""
                while b"</methodCall>\n" not in data:
                    chunk = conn.recv(4096)
                    if not chunk:
                        break
                    data += chunk
                self.requests.append(data.decode())
                conn.sendall(body.encode())

    def close(self):
        self.thread.join(timeout=5)
        self.sock.close()


def _closed_port():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


def test_build_request_string_param():
    request = build_request("modem.set_by_name", "RTTY").decode()
    assert request.startswith("POST / HTTP/1.1\n")
    assert "<methodName>modem.set_by_name</methodName>" in request
    assert "<string>RTTY</string>" in request


def test_build_request_int_param():
    request = build_request("modem.set_carrier", 700).decode()
    assert "<i4>700</i4>" in request


def test_build_request_content_length_matches_body():
    request = build_request("main.tx", "").decode()
    header, body = request.split("\n\n", 1)
    length = int(header.split("Content-Length: ")[1].split("\n")[0])
    assert len(body) == length + 1


def test_parse_base64():
    encoded = base64.b64encode(b"hello").decode()
    assert parse_response(f"<value><base64>{encoded}</base64></value>") == "hello"


def test_parse_base64_without_end_tag():
    assert parse_response("<base64>aGVsbG8=") == ""


def test_parse_plain_value():
    assert parse_response("HTTP/1.1 200 OK\n\n<value>RX</value>") == "RX"


def test_parse_raw_body():
    assert parse_response("no markup here") == "no markup here"


def test_call_round_trip():
    server = _Server(["HTTP/1.1 200 OK\n\n<value>TX</value>"])
    client = FldigiClient(port=server.port)
    assert client.call("main.get_trx_state", "") == "TX"
    server.close()
    assert "<methodName>main.get_trx_state</methodName>" in server.requests[0]


def test_call_refused_raises():
    client = FldigiClient(port=_closed_port())
    with pytest.raises(FldigiError):
        client.call("main.rx", "")


def test_set_mode_only_when_changed():
    server = _Server(["<value></value>"])
    client = FldigiClient(port=server.port)
    assert client.set_mode("BPSK31") is True
    assert client.set_mode("BPSK31") is False
    server.close()
    assert len(server.requests) == 1
    assert client.mode == "BPSK31"


def test_set_mode_failure_keeps_mode():
    client = FldigiClient(port=_closed_port())
    with pytest.raises(FldigiError):
        client.set_mode("RTTY")
    assert client.mode == ""


def test_read_text_returns_one_character():
    server = _Server(["<value>abc</value>"])
    client = FldigiClient(port=server.port)
    assert client.read_text() == "a"
    server.close()


def test_read_text_is_throttled():
    now = [100.0]
    client = FldigiClient(port=_closed_port())
    client.clock = lambda: now[0]
    assert client.read_text() == ""
    assert client.read_text() is None
    now[0] += 1.0
    assert client.read_text() == ""


def test_read_text_after_mode_change_waits():
    server = _Server(["<value></value>"])
    now = [10.0]
    client = FldigiClient(port=server.port)
    client.clock = lambda: now[0]
    client.set_mode("RTTY")
    server.close()
    assert client.read_text() is None