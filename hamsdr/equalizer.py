"""Parametric audio equalizer built from peaking biquad filters."""

import logging
import math
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

NUM_BANDS = 5
INT32_MAX = 2**31 - 1
INT32_MIN = -(2**31)
MAX_GAIN_DB = 24.0

log = logging.getLogger(__name__)

_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)


@dataclass
class EQBand:
    """One equalizer band: centre frequency (Hz), gain (dB), bandwidth (octaves)."""

    frequency: float = 0.0
    gain: float = 0.0
    bandwidth: float = 0.0


@dataclass
class ParametricEQ:
    """A set of equalizer bands."""

    bands: list = field(default_factory=lambda: [EQBand() for _ in range(NUM_BANDS)])


def read_value(lines, key, default):
    """Return the number following the first occurrence of ``key``.

    One separator character after the key is skipped. If the key is absent,
    or no number follows it, ``default`` is returned.
    """
    for line in lines:
        index = line.find(key)
        if index < 0:
            continue
        match = _FLOAT_PREFIX.match(line[index + len(key) + 1:])
        return float(match.group(1)) if match else default
    return default


def load_eq(section, user_path=None, default_path=None):
    """Load the equalizer bands of ``section`` (e.g. ``"tx"`` or ``"rx"``).

    The user settings file is created from the default settings file when
    it does not exist yet.
    """
    data_dir = Path.home() / "sbitx" / "data"
    user = Path(user_path) if user_path is not None else data_dir / "user_settings.ini"
    default = (
        Path(default_path) if default_path is not None else data_dir / "default_settings.ini"
    )

    if not user.exists():
        log.info("%s not found, creating it from %s", user, default)
        shutil.copyfile(default, user)

    with user.open("r") as handle:
        lines = handle.readlines()

    eq = ParametricEQ()
    for i, band in enumerate(eq.bands):
        band.frequency = read_value(lines, f"#{section}_eq_b{i}f", band.frequency)
        band.gain = read_value(lines, f"#{section}_eq_b{i}g", band.gain)
        band.bandwidth = read_value(lines, f"#{section}_eq_b{i}b", band.bandwidth)
    return eq


def _clamp32(value):
    return max(INT32_MIN, min(INT32_MAX, value))


def _wrap32(value):
    return (value - INT32_MIN) % 2**32 + INT32_MIN


def _trunc_div(numerator, denominator):
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


@dataclass
class Biquad:
    """Peaking biquad filter with normalised coefficients and its state."""

    b0: float
    b1: float
    b2: float
    a1: float
    a2: float
    x1: float = 0.0
    x2: float = 0.0
    y1: float = 0.0
    y2: float = 0.0

    @classmethod
    def from_band(cls, band, sample_rate):
        """Design the filter for one band; gain is clamped to +/-24 dB."""
        gain = max(min(band.gain, MAX_GAIN_DB), -MAX_GAIN_DB)
        amp = 10.0 ** (gain / 40.0)
        omega = 2.0 * math.pi * band.frequency / sample_rate
        sin_omega = math.sin(omega)
        cos_omega = math.cos(omega)
        alpha = sin_omega * math.sinh(
            math.log(2.0) / 2.0 * band.bandwidth * omega / max(sin_omega, 1e-10)
        )
        a0 = 1.0 + alpha / amp
        if abs(a0) < 1e-10:
            a0 = 1e-10
        return cls(
            b0=(1.0 + alpha * amp) / a0,
            b1=(-2.0 * cos_omega) / a0,
            b2=(1.0 - alpha * amp) / a0,
            a1=(-2.0 * cos_omega) / a0,
            a2=(1.0 - alpha / amp) / a0,
        )

    def process(self, sample):
        """Filter one sample and return it clamped to the 32-bit range."""
        result = (
            self.b0 * sample
            + self.b1 * self.x1
            + self.b2 * self.x2
            - self.a1 * self.y1
            - self.a2 * self.y2
        )
        self.x2 = self.x1
        self.x1 = sample
        self.y2 = self.y1
        self.y1 = result
        if result > INT32_MAX:
            result = INT32_MAX
        if result < INT32_MIN:
            result = INT32_MIN
        return int(result)


def remove_dc_offset(samples):
    """Return the samples with their (truncated) mean subtracted."""
    samples = [int(s) for s in samples]
    if not samples:
        raise ValueError("no samples")
    average = _trunc_div(sum(samples), len(samples))
    return [s - average for s in samples]


def scale_samples(samples, gain_factor):
    """Return the samples multiplied by ``gain_factor``, clamped to 32 bits."""
    scaled = np.asarray(samples, dtype=np.float32) * np.float32(gain_factor)
    truncated = np.trunc(scaled.astype(np.float64))
    return [int(v) for v in np.clip(truncated, INT32_MIN, INT32_MAX)]


def apply_eq(eq, samples, sample_rate):
    """Run the samples through every band and return the averaged result."""
    samples = [int(s) for s in samples]
    if not samples:
        return []
    output = [0] * len(samples)
    for band in eq.bands:
        flt = Biquad.from_band(band, sample_rate)
        band_gain = 10.0 ** (band.gain / 20.0)
        for n, sample in enumerate(samples):
            filtered = flt.process(sample)
            output[n] = _wrap32(output[n] + _wrap32(int(filtered * band_gain)))
    count = len(eq.bands)
    output = [_trunc_div(v, count) for v in output]
    return scale_samples(output, 1.0)