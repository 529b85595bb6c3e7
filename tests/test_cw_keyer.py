import pytest

from hamsdr.cw_keyer import (
    DEFAULT_PERIOD,
    FLOAT_SCALE,
    CwKeyer,
    KeySymbol,
    ToneOscillator,
    TxAction,
)


def text_keyer(text):
    chars = iter(text)
    echoed = []
    keyer = CwKeyer(lambda: next(chars, None), echoed.append)
    return keyer, echoed


def loud_count(samples, level=0.06):
    return sum(1 for s in samples if abs(s) > level)


def test_oscillator_peak_at_quarter_phase():
    osc = ToneOscillator(1000, 16384)
    assert osc.read() == int(FLOAT_SCALE)


def test_oscillator_stays_in_range():
    osc = ToneOscillator(1234, 0)
    assert all(abs(osc.read()) <= FLOAT_SCALE for _ in range(5000))


def test_oscillator_rejects_bad_rate():
    with pytest.raises(ValueError):
        ToneOscillator(700, 0, 0)


def test_set_wpm_rejects_zero():
    with pytest.raises(ValueError):
        CwKeyer().set_wpm(0)


def test_set_wpm_default_speed_keeps_period():
    keyer = CwKeyer()
    keyer.set_wpm(12)
    assert keyer.period == DEFAULT_PERIOD


def test_idle_keyer_is_silent():
    keyer = CwKeyer()
    assert keyer.poll(KeySymbol.IDLE, 0, False, 0, 500) == TxAction.NONE
    assert all(keyer.next_sample() == 0 for _ in range(1000))


def test_text_is_echoed_and_keyed():
    keyer, echoed = text_keyer("e")
    assert keyer.poll(KeySymbol.IDLE, 1, False, 0, 500) == TxAction.TX_ON
    samples = [keyer.next_sample() for _ in range(4 * DEFAULT_PERIOD)]
    assert echoed == ["E"]
    assert max(abs(s) for s in samples[:DEFAULT_PERIOD]) > 0.1
    assert max(abs(s) for s in samples[DEFAULT_PERIOD + 1000:]) < 2e-4
    assert all(abs(s) <= 0.125 for s in samples)


def test_dash_is_three_times_a_dot():
    dot, _ = text_keyer("e")
    dash, _ = text_keyer("t")
    dot.poll(KeySymbol.IDLE, 1, False, 0, 500)
    dash.poll(KeySymbol.IDLE, 1, False, 0, 500)
    dots = loud_count([dot.next_sample() for _ in range(6 * DEFAULT_PERIOD)])
    dashes = loud_count([dash.next_sample() for _ in range(6 * DEFAULT_PERIOD)])
    assert 2.5 < dashes / dots < 3.5


def test_unknown_character_is_a_silent_gap():
    keyer, echoed = text_keyer("#")
    keyer.poll(KeySymbol.IDLE, 1, False, 0, 500)
    samples = [keyer.next_sample() for _ in range(2 * DEFAULT_PERIOD)]
    assert echoed == []
    assert max(abs(s) for s in samples) == 0


def test_straight_key_holds_and_releases_transmitter():
    keyer = CwKeyer()
    assert keyer.poll(KeySymbol.DOWN, 0, False, 1000, 500) == TxAction.TX_ON
    held = [keyer.next_sample() for _ in range(2000)]
    assert max(abs(s) for s in held) > 0.1
    assert keyer.tx_until == 1500

    assert keyer.poll(KeySymbol.IDLE, 0, True, 1200, 500) == TxAction.NONE
    released = [keyer.next_sample() for _ in range(3000)]
    assert max(abs(s) for s in released[-500:]) < 2e-4
    assert keyer.poll(KeySymbol.IDLE, 0, True, 1600, 500) == TxAction.TX_OFF


def test_pending_text_keeps_transmitter_on():
    keyer, _ = text_keyer("eeee")
    keyer.poll(KeySymbol.IDLE, 4, False, 0, 100)
    keyer.next_sample()
    assert keyer.tx_until == 1000
    assert keyer.poll(KeySymbol.IDLE, 4, True, 500, 100) == TxAction.NONE


def test_pitch_change_applies_when_idle():
    keyer = CwKeyer()
    keyer.set_pitch(900)
    keyer.next_sample()
    assert keyer._tone.freq_hz == 900