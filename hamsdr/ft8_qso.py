"""Drives an FT8 contact from decoded lines, filling in the logger fields."""

import logging
import re
import time
from dataclasses import dataclass

log = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[ \r\n]+")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text):
    match = _LEADING_INT.match(text or "")
    return int(match.group(1)) if match else 0


@dataclass(frozen=True)
class DecodedLine:
    """A decoded line: time, score, SNR, pitch and up to four message words."""

    time: int
    score: int
    snr: str
    pitch: int
    m1: str
    m2: str
    m3: str = ""
    m4: str = ""


def tokenize(line):
    """Split a decoded line ``HHMMSS score snr pitch ~ words...``.

    Raises ValueError if the line is too short or lacks the ``~`` marker.
    """
    tokens = [t for t in _SEPARATORS.split(line) if t]
    if len(tokens) < 7:
        raise ValueError(f"decoded line too short: {line!r}")
    if tokens[4] != "~":
        raise ValueError(f"decoded line has no '~' marker: {line!r}")
    words = tokens[5:9] + [""] * (4 - len(tokens[5:9]))
    return DecodedLine(
        time=_atoi(tokens[0]),
        score=_atoi(tokens[1]),
        snr=tokens[2],
        pitch=_atoi(tokens[3]),
        m1=words[0],
        m2=words[1],
        m3=words[2],
        m4=words[3],
    )


def _looks_like_grid(word):
    # Two letters, but not an "RR..." acknowledgement.
    return (
        len(word) >= 2
        and word[0].isascii() and word[0].isalpha()
        and word[1].isascii() and word[1].isalpha()
        and not word.startswith("RR")
    )


def _is_signal_report(word):
    return word[:1] in ("-", "+") and word != "" or word[:2] in ("R-", "R+")


class Ft8Qso:
    """Answers FT8 messages addressed to us and records the contact.

    ``fields`` is a mutable mapping of logger and setting values (CALL, EXCH,
    SENT, RECV, NR, MYCALLSIGN, MYGRID, TX_PITCH, FT8_AUTO, FT8_TX1ST,
    FT8_REPEAT); ``scheduler`` sends the replies; ``on_log()`` records a
    completed contact. ``on_wipe``, if set, clears the logger's contact.
    """

    def __init__(self, fields, scheduler, on_log=None):
        self.fields = fields
        self.scheduler = scheduler
        self.on_log = on_log if on_log is not None else (lambda: None)
        self.on_wipe = None
        self.clock = time.time

    def _get(self, key):
        return self.fields.get(key, "") or ""

    def _wipe(self):
        if self.on_wipe is not None:
            self.on_wipe()

    def _send(self, reply):
        self.scheduler.queue(
            reply,
            _atoi(self._get("TX_PITCH")),
            self.clock(),
            tx_first_on=self._get("FT8_TX1ST") == "ON",
            repeat=_atoi(self._get("FT8_REPEAT")),
        )

    def process(self, line, start_qso=False):
        """Act on a decoded line; return the reply queued, or None."""
        try:
            decoded = tokenize(line)
        except ValueError:
            return None

        call = self._get("CALL")
        mycall = self._get("MYCALLSIGN")
        auto_respond = self._get("FT8_AUTO") == "ON"

        if start_qso:
            return self.start_qso(decoded)
        if auto_respond and not call and decoded.m1 == mycall:
            return self.start_qso(decoded)
        if decoded.m1 != mycall:
            log.info("FT8: Not a message for %s", mycall)
            return None

        if decoded.m3 == "73":
            self.scheduler.abort()
            self.on_log()
            self.scheduler.repeat = 0
            return None

        reply = None
        if decoded.m3 in ("RR73", "RRR"):
            reply = f"{decoded.m2} {mycall} 73"
            self._send(reply)
            self.on_log()
            self._wipe()
            self.scheduler.repeat = 1

        if not call:
            return reply
        if _is_signal_report(decoded.m3):
            return self.signal_report(decoded)
        return reply

    def start_qso(self, decoded):
        """Start a contact: answer a CQ, a direct call, or break into a QSO."""
        self.scheduler.abort()
        self._wipe()

        msg_second = decoded.time % 100
        # Transmit in the slots opposite to the one the message came in.
        self.scheduler.tx_first = not (msg_second < 15 or 30 <= msg_second < 45)

        f = self.fields
        mycall = self._get("MYCALLSIGN")
        mygrid = self._get("MYGRID")[:4]
        snr = decoded.snr

        if decoded.m1 == "CQ":
            if decoded.m4:
                f["CALL"] = decoded.m3
                f["EXCH"] = decoded.m4
            else:
                f["CALL"] = decoded.m2
                f["EXCH"] = decoded.m3
            f["SENT"] = snr
            reply = f"{f['CALL']} {mycall} {mygrid}"
        elif decoded.m1 == mycall:
            f["CALL"] = decoded.m2
            f["SENT"] = snr
            if _looks_like_grid(decoded.m3):
                f["EXCH"] = decoded.m3
                reply = f"{f['CALL']} {mycall} {snr}"
            else:
                f["RECV"] = decoded.m3
                reply = f"{f['CALL']} {mycall} R{snr}"
        else:
            f["CALL"] = decoded.m2
            f["EXCH"] = decoded.m3 if _looks_like_grid(decoded.m3) else ""
            f["SENT"] = snr
            reply = f"{f['CALL']} {mycall} {snr}"

        f["NR"] = mygrid
        self._send(reply)
        return reply

    def signal_report(self, decoded):
        """Record the report received and answer it."""
        f = self.fields
        f["CALL"] = decoded.m2
        mycall = self._get("MYCALLSIGN")
        if decoded.m3.startswith("R"):
            f["RECV"] = decoded.m3[1:]
            reply = f"{f['CALL']} {mycall} RRR"
        else:
            f["RECV"] = decoded.m3
            reply = f"{f['CALL']} {mycall} R{self._get('SENT')}"
        self._send(reply)
        return reply