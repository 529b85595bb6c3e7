import math

import numpy as np
import pytest

from hamsdr.ft8_dsp import (
    SAMPLE_RATE,
    Monitor,
    Protocol,
    blackman,
    gfsk_pulse,
    hamming,
    hann,
    slot_signal,
    synth_gfsk,
)


def test_gfsk_pulse_shape():
    n = 32
    pulse = gfsk_pulse(n, 2.0)
    assert len(pulse) == 3 * n
    assert np.all(pulse >= 0) and np.all(pulse <= 1)
    for i in range(1, 3 * n):
        assert pulse[i] == pytest.approx(pulse[3 * n - i], abs=1e-9)
    assert int(np.argmax(pulse)) == 3 * n // 2


def test_gfsk_pulse_rejects_bad_size():
    with pytest.raises(ValueError):
        gfsk_pulse(0, 2.0)


def test_synth_length_and_bounds():
    symbols = [0, 3, 7, 1, 2]
    wave = synth_gfsk(symbols, 1000.0, 2.0, 0.16, SAMPLE_RATE)
    n_spsym = int(0.5 + SAMPLE_RATE * 0.16)
    assert len(wave) == len(symbols) * n_spsym
    assert np.max(np.abs(wave)) <= 1.0 + 1e-9
    assert wave[0] == 0.0
    assert abs(wave[-1]) < 1e-6


def test_synth_constant_tone_frequency():
    wave = synth_gfsk([0] * 10, 1500.0, 2.0, 0.16, SAMPLE_RATE)
    spectrum = np.abs(np.fft.rfft(wave))
    peak_hz = np.argmax(spectrum) * SAMPLE_RATE / len(wave)
    assert peak_hz == pytest.approx(1500.0, abs=2.0)


def test_synth_rejects_empty():
    with pytest.raises(ValueError):
        synth_gfsk([], 1000.0, 2.0, 0.16, SAMPLE_RATE)


@pytest.mark.parametrize("protocol", [Protocol.FT8, Protocol.FT4])
def test_slot_signal_fills_slot(protocol):
    tones = [i % 4 for i in range(protocol.num_tones)]
    signal = slot_signal(tones, 1000, protocol)
    assert len(signal) == int(protocol.slot_time * SAMPLE_RATE)
    assert signal[0] == 0.0 and signal[-1] == 0.0
    assert np.max(np.abs(signal)) > 0.9


def test_slot_signal_wrong_tone_count():
    with pytest.raises(ValueError):
        slot_signal([0] * 10, 1000, Protocol.FT8)


def test_windows():
    assert hann(0, 64) == 0.0
    assert hann(32, 64) == pytest.approx(1.0)
    assert hamming(0, 64) == pytest.approx(25 / 46 - 21 / 46)
    assert blackman(0, 64) == pytest.approx(0.0, abs=1e-12)
    assert blackman(32, 64) == pytest.approx(1.0)


def test_monitor_geometry():
    mon = Monitor(Protocol.FT8)
    assert mon.block_size == 1920
    assert mon.nfft == 2 * mon.block_size
    assert mon.subblock_size * 2 == mon.block_size
    assert mon.wf.num_bins * 2 == mon.block_size
    assert mon.wf.max_blocks == int(Protocol.FT8.slot_time / Protocol.FT8.symbol_period)
    assert len(mon.wf.mag) == mon.wf.max_blocks * mon.wf.block_stride


def test_monitor_silence_is_floor():
    mon = Monitor(Protocol.FT8)
    assert mon.process(np.zeros(mon.block_size)) is True
    stride = mon.wf.block_stride
    assert mon.wf.num_blocks == 1
    assert np.all(mon.wf.mag[:stride] == 0)


def test_monitor_tone_lands_in_its_bin():
    mon = Monitor(Protocol.FT8)
    t = np.arange(4 * mon.block_size) / SAMPLE_RATE
    tone = np.sin(2 * math.pi * 1000.0 * t)
    assert mon.process_signal(tone) == 4
    wf = mon.wf
    grid = wf.mag.reshape(wf.max_blocks, wf.time_osr, wf.freq_osr, wf.num_bins)
    expected_bin = round(1000.0 * mon.symbol_period)
    assert abs(int(np.argmax(grid[2, 1, 0])) - expected_bin) <= 1
    assert mon.max_mag > -20


def test_monitor_stops_when_full_and_resets():
    mon = Monitor(Protocol.FT4)
    signal = np.zeros((mon.wf.max_blocks + 5) * mon.block_size)
    assert mon.process_signal(signal) == mon.wf.max_blocks
    assert mon.process(np.zeros(mon.block_size)) is False
    mon.reset()
    assert mon.wf.num_blocks == 0
    assert mon.max_mag == 0.0


def test_monitor_short_frame_raises():
    mon = Monitor(Protocol.FT8)
    with pytest.raises(ValueError):
        mon.process(np.zeros(10))