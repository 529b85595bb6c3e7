"""Tiny XML-RPC client for a locally running fldigi modem program."""

import logging
import socket
import time

from hamsdr.b64codec import b64_decode

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7362
RECV_SIZE = 10000
READ_INTERVAL = 0.25
MODE_SETTLE = 2.0

log = logging.getLogger(__name__)


class FldigiError(Exception):
    """Raised when fldigi cannot be reached or does not answer."""


def build_request(action, param=""):
    """Return the HTTP request bytes that call ``action`` with one parameter.

    Integers are sent as ``i4`` values, anything else as a string.
    """
    if isinstance(param, int) and not isinstance(param, bool):
        value = f"<i4>{param}</i4>"
    else:
        value = f"<string>{param}</string>"
    xml = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f"<methodCall><methodName>{action}</methodName>\n"
        f"<params>\n<param><value>{value}</value></param> </params></methodCall>\n"
    )
    request = (
        "POST / HTTP/1.1\n"
        f"Host: {DEFAULT_HOST}:{DEFAULT_PORT}\n"
        "User-Agent: hamsdr/v0.01\n"
        "Accept:\n"
        f"Content-Length: {len(xml)}\n"
        "Content-Type: application/x-www-form-urlencoded\n\n"
        f"{xml}\n"
    )
    return request.encode("utf-8")


def parse_response(body):
    """Extract the result text from a response body.

    A ``<base64>`` value is decoded; otherwise the text of the first
    ``<value>`` element is returned; a body with neither is returned whole.
    """
    start = body.find("<base64>")
    if start >= 0:
        rest = body[start + len("<base64>"):]
        end = rest.find("<")
        if end < 0:
            return ""
        encoded = rest[:end]
        return b64_decode(encoded)[: (len(encoded) * 6) // 8]
    start = body.find("<value>")
    if start >= 0:
        rest = body[start + len("<value>"):]
        end = rest.find("<")
        return rest[:end] if end >= 0 else ""
    return body


class FldigiClient:
    """Calls fldigi methods and polls it for received text."""

    def __init__(self, host=DEFAULT_HOST, port=DEFAULT_PORT, timeout=1.0):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.mode = ""
        self.retry_at = 0.0
        self.clock = time.monotonic

    def call(self, action, param=""):
        """Call ``action`` and return its result text; raise FldigiError on failure."""
        request = build_request(action, param)
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as sock:
                sock.sendall(request)
                data = sock.recv(RECV_SIZE)
        except OSError as exc:
            raise FldigiError(f"fldigi call {action!r} failed: {exc}") from exc
        return parse_response(data.decode("utf-8", errors="replace"))

    def set_mode(self, mode):
        """Switch fldigi's modem if it differs; return True when it was changed."""
        if mode == self.mode:
            return False
        self.call("modem.set_by_name", mode)
        self.retry_at = self.clock() + MODE_SETTLE
        self.mode = mode
        return True

    def read_text(self):
        """Return newly received text, or None if polled too soon.

        Plain text is returned one character at a time; errors give "".
        """
        if self.retry_at > self.clock():
            return None
        try:
            text = self.call("rx.get_data", "")
        except FldigiError as exc:
            log.debug("%s", exc)
            text = ""
        if text and text[0] != "<":
            text = text[:1]
        self.retry_at = self.clock() + READ_INTERVAL
        return text