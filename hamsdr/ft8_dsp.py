"""FT8/FT4 waveform synthesis and the waterfall analysis used for decoding."""

import math
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

SAMPLE_RATE = 12000
GFSK_CONST_K = 5.336446  # pi * sqrt(2 / log(2))
FT8_SYMBOL_BT = 2.0
FT4_SYMBOL_BT = 1.0
TWO_PI = 2.0 * math.pi


class Protocol(Enum):
    """The two supported protocols."""

    FT8 = "ft8"
    FT4 = "ft4"

    @property
    def num_tones(self):
        """Number of channel symbols in one transmission."""
        return 79 if self is Protocol.FT8 else 105

    @property
    def symbol_period(self):
        """Duration of one symbol in seconds."""
        return 0.160 if self is Protocol.FT8 else 0.048

    @property
    def slot_time(self):
        """Length of one transmit slot in seconds."""
        return 15.0 if self is Protocol.FT8 else 7.5

    @property
    def symbol_bt(self):
        """Bandwidth-time product of the GFSK smoothing filter."""
        return FT8_SYMBOL_BT if self is Protocol.FT8 else FT4_SYMBOL_BT


def gfsk_pulse(n_spsym, symbol_bt):
    """Return the GFSK smoothing pulse, truncated to three symbols."""
    if n_spsym <= 0:
        raise ValueError("samples per symbol must be positive")
    t = np.arange(3 * n_spsym) / n_spsym - 1.5
    arg1 = GFSK_CONST_K * symbol_bt * (t + 0.5)
    arg2 = GFSK_CONST_K * symbol_bt * (t - 0.5)
    return np.array([(math.erf(a) - math.erf(b)) / 2 for a, b in zip(arg1, arg2)])


def synth_gfsk(symbols, f0, symbol_bt, symbol_period, signal_rate):
    """Synthesize a GFSK waveform for the given tones, starting at ``f0`` Hz."""
    symbols = [int(s) for s in symbols]
    if not symbols:
        raise ValueError("no symbols to synthesize")
    n_spsym = int(0.5 + signal_rate * symbol_period)
    if n_spsym <= 0:
        raise ValueError("symbol period too short for the sample rate")
    n_sym = len(symbols)
    n_wave = n_sym * n_spsym
    dphi_peak = TWO_PI / n_spsym

    dphi = np.full(n_wave + 2 * n_spsym, TWO_PI * f0 / signal_rate)
    pulse = gfsk_pulse(n_spsym, symbol_bt)
    for i, tone in enumerate(symbols):
        start = i * n_spsym
        dphi[start:start + 3 * n_spsym] += dphi_peak * tone * pulse

    # Dummy symbols at both ends repeat the first and last tone.
    dphi[:2 * n_spsym] += dphi_peak * pulse[n_spsym:] * symbols[0]
    end = n_sym * n_spsym
    dphi[end:end + 2 * n_spsym] += dphi_peak * pulse[:2 * n_spsym] * symbols[-1]

    steps = dphi[n_spsym:n_spsym + n_wave - 1]
    phi = np.concatenate(([0.0], np.cumsum(steps)))
    signal = np.sin(np.mod(phi, TWO_PI))

    n_ramp = n_spsym // 8
    if n_ramp:
        env = (1 - np.cos(TWO_PI * np.arange(n_ramp) / (2 * n_ramp))) / 2
        signal[:n_ramp] *= env
        signal[n_wave - n_ramp:] *= env[::-1]
    return signal


def slot_signal(tones, freq, protocol=Protocol.FT8):
    """Return a whole slot of audio at 12 kHz: silence, the tones, silence."""
    protocol = Protocol(protocol)
    tones = list(tones)
    if len(tones) != protocol.num_tones:
        raise ValueError(f"{protocol.name} needs {protocol.num_tones} tones, got {len(tones)}")
    num_samples = int(0.5 + protocol.num_tones * protocol.symbol_period * SAMPLE_RATE)
    num_silence = int((protocol.slot_time * SAMPLE_RATE - num_samples) / 2)
    wave = synth_gfsk(tones, float(freq), protocol.symbol_bt,
                      protocol.symbol_period, SAMPLE_RATE)
    silence = np.zeros(num_silence)
    return np.concatenate((silence, wave[:num_samples], silence))


def hann(i, n):
    """Hann window value at ``i`` of ``n``."""
    x = math.sin(math.pi * i / n)
    return x * x


def hamming(i, n):
    """Hamming window value at ``i`` of ``n``."""
    a0 = 25 / 46
    a1 = 1 - a0
    return a0 - a1 * math.cos(TWO_PI * i / n)


def blackman(i, n):
    """Blackman window value at ``i`` of ``n``."""
    alpha = 0.16
    a0 = (1 - alpha) / 2
    a1 = 0.5
    a2 = alpha / 2
    x1 = math.cos(TWO_PI * i / n)
    x2 = 2 * x1 * x1 - 1
    return a0 - a1 * x1 + a2 * x2


@dataclass
class Waterfall:
    """Log magnitudes per block, time subdivision, frequency subdivision and bin.

    Values are 0..255 where 0..240 covers -120..0 dB in half-dB steps.
    """

    max_blocks: int
    num_bins: int
    time_osr: int
    freq_osr: int
    protocol: Protocol
    num_blocks: int = 0
    mag: np.ndarray = field(init=False)

    def __post_init__(self):
        self.mag = np.zeros(self.max_blocks * self.block_stride, dtype=np.uint8)

    @property
    def block_stride(self):
        """Number of magnitudes stored per block."""
        return self.time_osr * self.freq_osr * self.num_bins


class Monitor:
    """Turns audio into a waterfall by overlapping windowed FFTs."""

    def __init__(self, protocol=Protocol.FT8, sample_rate=SAMPLE_RATE, time_osr=2, freq_osr=2):
        protocol = Protocol(protocol)
        if time_osr <= 0 or freq_osr <= 0 or sample_rate <= 0:
            raise ValueError("oversampling rates and sample rate must be positive")
        self.protocol = protocol
        self.symbol_period = protocol.symbol_period
        self.block_size = int(sample_rate * self.symbol_period)
        self.subblock_size = self.block_size // time_osr
        self.nfft = self.block_size * freq_osr
        self.fft_norm = 2.0 / self.nfft
        self.window = np.array([hann(i, self.nfft) for i in range(self.nfft)])
        self.last_frame = np.zeros(self.nfft)
        max_blocks = int(protocol.slot_time / self.symbol_period)
        num_bins = int(sample_rate * self.symbol_period / 2)
        self.wf = Waterfall(max_blocks, num_bins, time_osr, freq_osr, protocol)
        self.max_mag = -120.0

    def process(self, frame):
        """Add one block of samples to the waterfall; False once it is full."""
        wf = self.wf
        if wf.num_blocks >= wf.max_blocks:
            return False
        frame = np.asarray(frame, dtype=np.float64)
        if len(frame) < self.subblock_size * wf.time_osr:
            raise ValueError(f"frame needs {self.block_size} samples, got {len(frame)}")

        offset = wf.num_blocks * wf.block_stride
        step = self.subblock_size
        for time_sub in range(wf.time_osr):
            self.last_frame = np.concatenate(
                (self.last_frame[step:], frame[time_sub * step:(time_sub + 1) * step])
            )
            freqdata = np.fft.rfft(self.fft_norm * self.window * self.last_frame)
            for freq_sub in range(wf.freq_osr):
                bins = freqdata[freq_sub::wf.freq_osr][:wf.num_bins]
                db = 10.0 * np.log10(1e-12 + bins.real ** 2 + bins.imag ** 2)
                scaled = np.clip(np.trunc(2 * db + 240), 0, 255)
                wf.mag[offset:offset + wf.num_bins] = scaled.astype(np.uint8)
                offset += wf.num_bins
                self.max_mag = max(self.max_mag, float(db.max()))
        wf.num_blocks += 1
        return True

    def process_signal(self, signal):
        """Process a whole signal block by block; return the blocks stored."""
        signal = np.asarray(signal, dtype=np.float64)
        for pos in range(0, len(signal) - self.block_size + 1, self.block_size):
            self.process(signal[pos:pos + self.block_size])
        return self.wf.num_blocks

    def reset(self):
        """Start a new waterfall."""
        self.wf.num_blocks = 0
        self.max_mag = 0.0