"""FT8 receive buffering and slot-timed transmit scheduling."""

import logging
import time
from datetime import datetime, timezone
from enum import Enum

import numpy as np

from hamsdr.cw_keyer import TxAction

DECODE_RATE = 12000
INPUT_RATE = 96000
DECIMATION = INPUT_RATE // DECODE_RATE
MAX_BUFF = DECODE_RATE * 18
SLOT_SECONDS = 15
MIN_DECODE_SAMPLES = 13 * DECODE_RATE
INPUT_SCALE = 200000000.0
OUTPUT_SCALE = 7.0
DEFAULT_REPEAT = 5

log = logging.getLogger(__name__)


class Ft8Mode(Enum):
    """How much of a contact is run automatically."""

    MANUAL = "manual"
    SEMI = "semi"
    AUTO = "auto"

    @property
    def description(self):
        """Text shown to the operator when the mode is chosen."""
        return {
            Ft8Mode.MANUAL: "FT8 is manual now.\nSend messages through the keyboard\n",
            Ft8Mode.SEMI: "FT8 is semi-automatic.\nClick on the callsign to start the QSO\n",
            Ft8Mode.AUTO: "FT8 is automatic.\nIt will call CQ and QSO with the first reply.\n",
        }[self]


def _format_tx_line(now, pitch, text):
    stamp = datetime.fromtimestamp(int(now), timezone.utc).strftime("%H%M%S")
    return f"{stamp}  TX +00 {pitch:04d} ~  {text}"


class Ft8Receiver:
    """Collects 96 kHz audio at 12 kHz and signals when a slot is ready to decode."""

    def __init__(self):
        self.buffer = np.zeros(MAX_BUFF, dtype=np.float32)
        self.count = 0
        self.wallclock = 0
        self.decode_pending = False

    def feed(self, samples, now):
        """Add a block of samples received at time ``now`` (Unix seconds).

        Returns True while a full slot is waiting to be taken.
        """
        decimated = np.asarray(samples, dtype=np.float64)[::DECIMATION]
        n = len(decimated)
        if n > MAX_BUFF:
            raise ValueError(f"block of {n} decimated samples exceeds the buffer")
        if self.count + n >= MAX_BUFF:
            log.warning("Buffer Overflow")
            self.count = 0
        self.buffer[self.count:self.count + n] = decimated / INPUT_SCALE
        self.count += n

        now = int(now)
        if now == self.wallclock:
            return self.decode_pending
        self.wallclock = now

        slot_second = now % SLOT_SECONDS
        if slot_second == 0:
            self.count = 0
        if self.count >= MIN_DECODE_SAMPLES and slot_second > 13:
            self.decode_pending = True
        return self.decode_pending

    def take(self):
        """Return the collected slot for decoding and start a new one, or None."""
        if not self.decode_pending:
            return None
        self.decode_pending = False
        data = self.buffer[:self.count].copy()
        self.count = 0
        return data


class Ft8Scheduler:
    """Holds the message to transmit and starts it in the right 15-second slot.

    ``encoder(text, pitch)`` returns the 12 kHz samples of a whole slot.
    """

    def __init__(self, encoder):
        self.encoder = encoder
        self.mode = Ft8Mode.SEMI
        self.text = ""
        self.pitch = 0
        self.repeat = DEFAULT_REPEAT
        self.tx_first = True
        self.tx_line = ""
        self._samples = np.zeros(0)
        self._nsamples = 0
        self._index = 0
        self._last_second = 0

    def queue(self, message, pitch, now, tx_first_on=False, repeat=DEFAULT_REPEAT):
        """Schedule ``message`` for transmission and return the queued-line text.

        ``tx_first_on`` picks the first slot for a CQ call; a message ending
        in ``73`` is sent only once, others ``repeat`` times.
        """
        text = message.upper()
        self.text = text
        self.pitch = int(pitch)
        line = _format_tx_line(now, self.pitch, text)

        if text.startswith("CQ"):
            self.tx_first = bool(tx_first_on)
        if len(text) > 3 and text.endswith(" 73"):
            self.repeat = 1
        else:
            self.repeat = int(repeat)
        return line

    @staticmethod
    def _in_slot(tx_first, seconds):
        if tx_first:
            return 0 <= seconds < 15 or 30 <= seconds < 45
        return 15 <= seconds < 30 or 45 <= seconds < 59

    def poll(self, seconds, tx_is_on, now=None):
        """Check once a second whether to start or stop transmitting."""
        if tx_is_on:
            if self._nsamples == 0:
                return TxAction.TX_OFF
            return TxAction.NONE

        if not self.repeat or seconds == self._last_second:
            return TxAction.NONE

        seconds %= 60
        self._last_second = seconds
        if not self._in_slot(self.tx_first, seconds):
            return TxAction.NONE

        if now is None:
            now = time.time()
        self._start_tx(seconds % SLOT_SECONDS, now)
        self.repeat -= 1
        return TxAction.TX_ON

    def _start_tx(self, offset_seconds, now):
        self.tx_line = _format_tx_line(now, self.pitch, self.text)
        self._samples = np.asarray(self.encoder(self.text, self.pitch), dtype=np.float64)
        self._nsamples = len(self._samples)
        self._index = offset_seconds * INPUT_RATE

    def next_sample(self):
        """Return the next 96 kHz output sample of the message, 0.0 when done."""
        position = self._index // DECIMATION
        if position < self._nsamples:
            self._index += 1
            return float(self._samples[position]) / OUTPUT_SCALE
        self._nsamples = 0
        return 0.0

    def abort(self):
        """Stop the current transmission and cancel repeats."""
        self._nsamples = 0
        self.repeat = 0