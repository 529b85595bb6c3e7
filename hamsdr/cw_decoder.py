"""Morse decoder driven by a Goertzel tone detector."""

import math
from dataclasses import dataclass

from hamsdr.morse import rx_lookup

N_BINS = 128
INIT_TONE = 600
SAMPLING_FREQ = 12000
INIT_WPM = 30
INPUT_RATE = 96000
MAX_SYMBOLS = 100
HIGH_DECAY = 100
NOISE_DECAY = 100
MARK_LEVEL = 30000
_SPACE_HISTORIES = frozenset({0, 1, 2, 3, 4, 8})


def initial_dash_len(wpm):
    """Dash length, in detector blocks, for a given speed in words per minute."""
    if wpm <= 0:
        raise ValueError("wpm must be positive")
    return (18 * SAMPLING_FREQ) // (5 * N_BINS * wpm)


class GoertzelBin:
    """Measures signal magnitude at one frequency over blocks of ``n`` samples."""

    def __init__(self, freq, n=N_BINS, sampling_freq=SAMPLING_FREQ):
        if n <= 0 or sampling_freq <= 0:
            raise ValueError("block size and sampling frequency must be positive")
        self.k = int(0.5 + (n * freq) / sampling_freq)
        self.omega = (2.0 * math.pi * self.k) / n
        self.sine = math.sin(self.omega)
        self.cosine = math.cos(self.omega)
        self.coeff = 2.0 * self.cosine
        self.n = n
        self.freq = int(freq)
        self.scaling_factor = n / 2.0

    def detect(self, data):
        """Return the integer magnitude of the first ``n`` samples of ``data``."""
        values = list(data)[: self.n]
        if len(values) < self.n:
            raise ValueError(f"need {self.n} samples, got {len(values)}")
        q1 = q2 = 0.0
        for value in values:
            q1, q2 = self.coeff * q1 - q2 + float(value), q1
        real = (q1 * self.cosine - q2) / self.scaling_factor
        imag = (q1 * self.sine) / self.scaling_factor
        return int(math.hypot(real, imag))


@dataclass
class Symbol:
    """One run of mark or space, measured in detector blocks."""

    is_mark: bool = False
    magnitude: int = 0
    ticks: int = 0


class CwDecoder:
    """Turns blocks of received audio into decoded Morse text.

    Decoded letters, unknown patterns and word gaps are passed to ``output``.
    """

    def __init__(self, output=None):
        self.output = output if output is not None else (lambda text: None)
        self.n_bins = N_BINS
        self.wpm = 12
        self.dash_len = initial_dash_len(INIT_WPM)
        self.signal = GoertzelBin(INIT_TONE, N_BINS, SAMPLING_FREQ)
        self.ticker = 0
        self.mark = 0
        self.prev_mark = 0
        self.high_level = 0
        self.noise_floor = 0
        self.sig_state = 0
        self.magnitude = 0
        self.symbol_magnitude = 0
        self.history_sig = 0
        self.symbols = [Symbol() for _ in range(MAX_SYMBOLS)]
        self.next_symbol = 0

    def set_pitch(self, pitch):
        """Retune the tone detector if the pitch has changed."""
        if pitch != self.signal.freq:
            self.signal = GoertzelBin(pitch, N_BINS, SAMPLING_FREQ)

    def set_wpm(self, wpm):
        """Reset the expected dash length when the speed changes."""
        if wpm != self.wpm:
            self.dash_len = initial_dash_len(wpm)
            self.wpm = wpm

    def match_letter(self):
        """Decode the collected symbols into a letter; return the text emitted."""
        if self.next_symbol == 0:
            return None
        in_mark = False
        total_ticks = 0
        min_dot = self.dash_len // 6
        code = []
        for sym in self.symbols[: self.next_symbol]:
            if sym.is_mark:
                if not in_mark and sym.ticks > min_dot:
                    in_mark = True
                    total_ticks = 0
            elif in_mark and sym.ticks > min_dot:
                in_mark = False
                if total_ticks > self.dash_len // 2:
                    code.append("-")
                    new_dash = (self.dash_len * 3 + total_ticks) // 4
                    init_dash = initial_dash_len(self.wpm)
                    if init_dash // 2 < new_dash < init_dash * 2:
                        self.dash_len = new_dash
                elif min_dot <= total_ticks:
                    code.append(".")
            total_ticks += sym.ticks
        self.next_symbol = 0
        pattern = "".join(code)
        text = rx_lookup(pattern)
        if text is None:
            text = pattern
        self.output(text)
        return text

    def process_block(self, samples):
        """Process one block of ``n_bins`` samples at the decoder's rate."""
        self.magnitude = self.signal.detect(samples)
        if self.magnitude > (self.high_level * 6) // 10:
            self.sig_state = MARK_LEVEL
        elif self.magnitude < (self.high_level * 4) // 10:
            self.sig_state = 0
        self._update_levels()
        self._denoise()
        self._detect_symbol()
        self.ticker += 1

    def feed(self, samples):
        """Decimate 96 kHz samples and process them block by block."""
        samples = list(samples)
        decimation = INPUT_RATE // SAMPLING_FREQ
        block_len = decimation * self.n_bins
        if len(samples) % block_len:
            raise ValueError(
                f"{len(samples)} samples do not align with blocks of {block_len}"
            )
        for start in range(0, len(samples), block_len):
            block = samples[start:start + block_len:decimation]
            self.process_block([int(s) >> 8 for s in block])

    def _add_symbol(self, is_mark):
        if self.next_symbol == MAX_SYMBOLS:
            self.next_symbol = 0
        sym = self.symbols[self.next_symbol]
        sym.is_mark = is_mark
        sym.ticks = self.ticker
        sym.magnitude = (sym.magnitude * 10 + self.magnitude) // 11
        self.next_symbol += 1

    def _update_levels(self):
        if self.high_level < self.magnitude:
            self.high_level = self.magnitude
        else:
            self.high_level = (
                self.magnitude + (HIGH_DECAY - 1) * self.high_level
            ) // HIGH_DECAY
        if self.magnitude < (self.high_level * 4) // 10:
            if self.magnitude < 100:
                self.magnitude = 100
            self.noise_floor = (
                self.magnitude + (NOISE_DECAY - 1) * self.noise_floor
            ) // NOISE_DECAY
            self.symbol_magnitude += self.magnitude

    def _denoise(self):
        # A mark or space must persist for a few blocks before it is believed.
        self.history_sig = ((self.history_sig << 1) | (1 if self.sig_state else 0)) & 0xFFFFFFFF
        self.prev_mark = self.mark
        self.mark = 0 if (self.history_sig & 0xF) in _SPACE_HISTORIES else MARK_LEVEL

    def _detect_symbol(self):
        if self.mark == 0 and self.prev_mark > 0:
            self._add_symbol(True)
            self.ticker = 0
        elif self.mark > 1 and self.prev_mark == 0:
            self._add_symbol(False)
            self.ticker = 0
        elif self.mark == 0 and self.prev_mark == 0:
            if self.next_symbol == 0:
                if self.ticker > (self.dash_len * 3) // 2:
                    self.output(" ")
                    self.ticker = 0
            elif self.ticker > self.dash_len // 2:
                self._add_symbol(False)
                self.match_letter()
                if self.ticker > (self.dash_len * 3) // 2:
                    self.output(" ")
                self.ticker = 0
        elif self.mark > 0 and self.prev_mark > 0:
            if self.ticker > self.dash_len * 3:
                self.ticker = self.dash_len