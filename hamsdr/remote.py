"""Telnet-style remote console for querying and commanding the radio."""

import logging
import re
import socket

DEFAULT_PORT = 8081
RECV_SIZE = 1024
SCREEN_SETUP = ("\033[1;1H", "\033[r", "\033[2J", "\033[25;1r")

log = logging.getLogger(__name__)


class RemoteConsole:
    """Accepts one client at a time on a non-blocking TCP socket.

    A line starting with ``?`` is answered with ``query(label)``; any other
    non-empty line is handed to ``execute(command)``.
    """

    def __init__(self, port=DEFAULT_PORT, query=None, execute=None, banner=""):
        self.port = port
        self._query = query if query is not None else (lambda label: "")
        self._execute = execute if execute is not None else (lambda command: None)
        self.banner = banner
        self._listener = None
        self._client = None

    @property
    def connected(self):
        """True while a client is attached."""
        return self._client is not None

    def start(self):
        """Open the listening socket; ``port`` is updated to the bound port."""
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        listener.setblocking(False)
        try:
            listener.bind(("", self.port))
            listener.listen(5)
        except OSError:
            listener.close()
            raise
        self._listener = listener
        self.port = listener.getsockname()[1]

    def handle_line(self, line):
        """Answer a query or run a command from one received line."""
        line = re.split(r"[\r\n]", line, maxsplit=1)[0]
        if line.startswith("?"):
            self.write(self._query(line[1:]) + "\n")
        elif line:
            self._execute(line)

    def write(self, message):
        """Send text to the client; the client is dropped if sending fails."""
        if self._client is None:
            return
        try:
            self._client.send(message.encode("utf-8"))
        except OSError:
            self._drop()

    def poll(self):
        """Accept a waiting client or service the connected one, never blocking."""
        if self._listener is None:
            raise RuntimeError("remote console is not started")
        if self._client is None:
            try:
                client, address = self._listener.accept()
            except OSError:
                return
            log.info("Accepted telnet connection from %s", address)
            client.setblocking(False)
            self._client = client
            self._greet()
            return
        try:
            data = self._client.recv(RECV_SIZE)
        except BlockingIOError:
            return
        except OSError:
            log.info("Connection error. Dropping the connection...")
            self._drop()
            return
        if not data:
            log.info("Client closed the connection.")
            self._drop()
            return
        text = data.decode("utf-8", errors="replace")
        log.debug("Received on remote: [%s]", text)
        self.handle_line(text)

    def close(self):
        """Close the client and the listening socket."""
        self._drop()
        if self._listener is not None:
            self._listener.close()
            self._listener = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def _greet(self):
        for sequence in SCREEN_SETUP:
            self.write(sequence)
        self.write(self.banner)
        self.write("\r\n")

    def _drop(self):
        if self._client is not None:
            self._client.close()
            self._client = None