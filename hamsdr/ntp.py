"""Minimal SNTP client that checks and corrects the system clock."""

import logging
import socket
import string
import struct
import time
from datetime import datetime, timezone

NTP_TIMESTAMP_DELTA = 2208988800
NTP_PORT = 123
PACKET_SIZE = 48
_REQUEST_MODE = 0x1B
_TRANSMIT_OFFSET = 40

log = logging.getLogger(__name__)


class NtpError(Exception):
    """Raised when the time cannot be obtained or applied."""


def is_dotted_quad(host):
    """Tell whether ``host`` looks like a numeric IPv4 address."""
    pos = 0
    dots = 0
    digits = 0
    length = len(host)
    while pos < length:
        digits = 0
        while digits < 3 and pos < length and host[pos] in string.digits:
            digits += 1
            pos += 1
        if pos >= length or host[pos] != ".":
            break
        pos += 1
        dots += 1
    return dots == 3 and 0 < digits <= 3


def resolve_address(host):
    """Return the IPv4 address of ``host`` as a string."""
    if is_dotted_quad(host):
        try:
            return socket.inet_ntoa(socket.inet_aton(host))
        except OSError as exc:
            raise NtpError(f"invalid address {host!r}") from exc
    try:
        return socket.gethostbyname(host)
    except OSError as exc:
        raise NtpError(f"cannot resolve {host!r}") from exc


def build_request():
    """Return a client-mode request packet."""
    return bytes([_REQUEST_MODE]) + bytes(PACKET_SIZE - 1)


def parse_transmit_time(packet):
    """Return the server's transmit time in Unix seconds."""
    if len(packet) < PACKET_SIZE:
        raise NtpError(f"short reply of {len(packet)} bytes")
    (seconds,) = struct.unpack_from("!I", packet, _TRANSMIT_OFFSET)
    return seconds - NTP_TIMESTAMP_DELTA


def ntp_request(server, timeout=0.5):
    """Ask ``server`` for the time and return it in Unix seconds."""
    log.info("Resolving NTP server at %s", server)
    address = resolve_address(server)
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP) as sock:
            sock.settimeout(timeout)
            sock.connect((address, NTP_PORT))
            sock.send(build_request())
            reply = sock.recv(PACKET_SIZE)
    except TimeoutError as exc:
        raise NtpError("timed out waiting for the NTP server") from exc
    except OSError as exc:
        raise NtpError(f"NTP exchange failed: {exc}") from exc
    if not reply:
        raise NtpError("empty reply from the NTP server")
    tx_time = parse_transmit_time(reply)
    stamp = datetime.fromtimestamp(tx_time, timezone.utc)
    log.info("Time: %s", stamp.strftime("%Y-%m-%d %H:%M:%S"))
    return tx_time


def sync_system_time(server):
    """Set the system clock from ``server`` if it is more than a second off.

    Returns True when the clock was changed, False when it was already close.
    """
    current = int(time.time())
    ntp_time = ntp_request(server)
    if abs(current - ntp_time) <= 1:
        log.info("System time is already within 1 second of NTP time.")
        return False
    settime = getattr(time, "clock_settime", None)
    if settime is None:
        raise NtpError("setting the system clock is not supported here")
    try:
        settime(time.CLOCK_REALTIME, float(ntp_time))
    except OSError as exc:
        raise NtpError(f"failed to adjust system time: {exc}") from exc
    log.info("System time adjusted to match NTP time.")
    return True