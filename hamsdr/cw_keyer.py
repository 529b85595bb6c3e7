"""CW transmit keyer: straight key, iambic paddles and keyboard text."""

import math
from enum import Enum, IntFlag

from hamsdr.morse import tx_code

FLOAT_SCALE = 1073741824.0
SAMPLE_RATE = 96000
PHASE_STEPS = 65536
DEFAULT_PERIOD = 9600  # one dot at 12 wpm and 96 ksps
DEFAULT_PITCH = 700
ENVELOPE_HZ = 200
ENVELOPE_PHASE = 49044  # start at the trough so the envelope opens from zero
TEXT_HOLD_MS = 1000
_DEFAULT_CODE = " "


class KeySymbol(IntFlag):
    """Key states and keyer elements."""

    IDLE = 0
    DOT = 1
    DASH = 2
    DOT_DELAY = 4
    DASH_DELAY = 8
    WORD_DELAY = 16
    DOWN = 32


class KeyerMode(Enum):
    """How the key input is interpreted."""

    STRAIGHT = "straight"
    IAMBIC = "iambic"
    IAMBIC_B = "iambicb"


class TxAction(Enum):
    """What the caller should do with the transmitter after a poll."""

    NONE = "none"
    TX_ON = "tx_on"
    TX_OFF = "tx_off"


_CODE_SYMBOLS = {
    ".": KeySymbol.DOT,
    "-": KeySymbol.DASH,
    "/": KeySymbol.DASH_DELAY,
    " ": KeySymbol.WORD_DELAY,
}


class ToneOscillator:
    """Sine oscillator; phase is in 1/65536 of a cycle, output scaled to 2**30."""

    def __init__(self, freq_hz, phase=0, sample_rate=SAMPLE_RATE):
        if sample_rate <= 0:
            raise ValueError("sample rate must be positive")
        self.freq_hz = freq_hz
        self.sample_rate = sample_rate
        self.phase = phase % PHASE_STEPS
        self._step = freq_hz * PHASE_STEPS / sample_rate

    def read(self):
        """Return the current sample and advance by one sample period."""
        value = int(FLOAT_SCALE * math.sin(2.0 * math.pi * self.phase / PHASE_STEPS))
        self.phase = (self.phase + self._step) % PHASE_STEPS
        return value


class CwKeyer:
    """Generates shaped CW audio from the key state and queued text.

    ``text_source()`` returns the next character to send, or None when the
    queue is empty; ``echo(char)`` is told of each character that is sent.
    """

    def __init__(self, text_source=None, echo=None):
        self._text_source = text_source if text_source is not None else (lambda: None)
        self._echo = echo if echo is not None else (lambda char: None)
        self.period = DEFAULT_PERIOD
        self.pitch = DEFAULT_PITCH
        self.mode = KeyerMode.STRAIGHT
        self._tone = ToneOscillator(DEFAULT_PITCH, 0)
        self._env = ToneOscillator(ENVELOPE_HZ, ENVELOPE_PHASE)
        self.envelope = 0.0
        self.keydown_count = 0
        self.keyup_count = 0
        self.key_state = KeySymbol.IDLE
        self.bytes_available = 0
        self.tx_until = 0
        self.now_ms = 0
        self.cw_delay_ms = 0
        self._current = KeySymbol.IDLE
        self._queued = KeySymbol.IDLE
        self._last = KeySymbol.IDLE
        self._code = None
        self._pos = 0

    def set_wpm(self, wpm):
        """Set the sending speed in words per minute."""
        if wpm <= 0:
            raise ValueError("wpm must be positive")
        self.period = (12 * DEFAULT_PERIOD) // wpm

    def set_pitch(self, pitch):
        """Set the tone pitch; it takes effect when the keyer is idle."""
        self.pitch = pitch

    def _next_code_symbol(self):
        if self._code is None:
            return KeySymbol.IDLE
        if self._pos >= len(self._code):
            self._code = None
            return KeySymbol.DASH_DELAY
        char = self._code[self._pos]
        self._pos += 1
        return _CODE_SYMBOLS.get(char, KeySymbol.IDLE)

    def _read_key(self):
        if self.key_state != KeySymbol.IDLE:
            return self.key_state
        if self._current != KeySymbol.IDLE:
            return KeySymbol.IDLE
        if self._code is not None:
            return self._next_code_symbol()
        if not self.bytes_available:
            return KeySymbol.IDLE
        char = self._text_source()
        if not char:
            return KeySymbol.IDLE
        code = tx_code(char)
        if code is None:
            code = _DEFAULT_CODE
        else:
            self._echo(char.upper())
        self._code, self._pos = code, 0
        return self._next_code_symbol()

    def _step_state(self, now):
        period = self.period
        current = self._current
        if current == KeySymbol.IDLE:
            if now & KeySymbol.DOWN:
                self.keydown_count, self.keyup_count = 1, 0
                self._current = KeySymbol.DOWN
            elif now & KeySymbol.DOT:
                self.keydown_count, self.keyup_count = period, period
                self._current, self._last = KeySymbol.DOT, KeySymbol.IDLE
            elif now & KeySymbol.DASH:
                self.keydown_count, self.keyup_count = period * 3, period
                self._current, self._last = KeySymbol.DASH, KeySymbol.IDLE
            elif now & KeySymbol.DASH_DELAY:
                self.keydown_count, self.keyup_count = 0, period * 2
                self._current = KeySymbol.DOT_DELAY
            elif now & KeySymbol.WORD_DELAY:
                self.keydown_count, self.keyup_count = 0, int(period * 1.5)
                self._current = KeySymbol.DOT_DELAY
        elif current == KeySymbol.DOWN:
            if now & KeySymbol.DOWN:
                self.keydown_count += 1
                self.keyup_count = 0
            else:
                self.keydown_count, self.keyup_count = 0, 1
                self._current = KeySymbol.IDLE
        elif current in (KeySymbol.DOT, KeySymbol.DASH):
            other = KeySymbol.DASH if current == KeySymbol.DOT else KeySymbol.DOT
            if now & other and self._queued == KeySymbol.IDLE:
                self._queued = other
            if self.keydown_count == 0:
                self.keyup_count = period
                self._last = current
                self._current = KeySymbol.DOT_DELAY
        else:
            if self.keyup_count == 0:
                self._current = self._queued
                if self._current == KeySymbol.DOT:
                    self.keydown_count, self.keyup_count = period, period
                if self._current == KeySymbol.DASH:
                    self.keydown_count, self.keyup_count = period * 3, period
                self._last = KeySymbol.DOT_DELAY
                self._queued = KeySymbol.IDLE
            if self.mode == KeyerMode.IAMBIC_B and self._queued == KeySymbol.IDLE:
                if self._last == KeySymbol.DOT and now & KeySymbol.DASH:
                    self._queued = KeySymbol.DASH
                elif self._last == KeySymbol.DASH and now & KeySymbol.DOT:
                    self._queued = KeySymbol.DOT

    def next_sample(self):
        """Return the next audio sample of the keyed tone."""
        now = self._read_key()
        if not self.keydown_count and not self.keyup_count and self._tone.freq_hz != self.pitch:
            self._tone = ToneOscillator(self.pitch)

        self._step_state(now)

        if self.keydown_count > 0:
            if self.envelope < 0.999:
                self.envelope = (self._env.read() / FLOAT_SCALE + 1) / 2
            self.keydown_count -= 1
        else:
            if self.envelope > 0.001:
                self.envelope = (self._env.read() / FLOAT_SCALE + 1) / 2
            if self.keyup_count > 0:
                self.keyup_count -= 1
        sample = (self._tone.read() / FLOAT_SCALE) * self.envelope

        if now & KeySymbol.DOWN or self.keydown_count > 0:
            self.tx_until = self.now_ms + self.cw_delay_ms
        if self.bytes_available:
            self.tx_until = self.now_ms + TEXT_HOLD_MS
        return sample / 8

    def poll(self, key_state, bytes_available, tx_is_on, now_ms, cw_delay_ms,
             mode=KeyerMode.STRAIGHT):
        """Update the inputs and say whether to switch the transmitter."""
        self.bytes_available = bytes_available
        self.key_state = KeySymbol(key_state)
        self.now_ms = now_ms
        self.cw_delay_ms = cw_delay_ms
        sending = self._code is not None and self._pos < len(self._code)
        if not tx_is_on and (bytes_available or self.key_state or sending):
            self.tx_until = now_ms + cw_delay_ms
            self.mode = KeyerMode(mode)
            return TxAction.TX_ON
        if tx_is_on and self.tx_until < now_ms:
            return TxAction.TX_OFF
        return TxAction.NONE