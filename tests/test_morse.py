import string

import pytest

from hamsdr.morse import RX_TABLE, TX_TABLE, rx_lookup, tx_code


def test_tx_code_letters_are_case_insensitive():
    assert tx_code("a") == ".-"
    assert tx_code("A") == ".-"
    assert tx_code("Q") == "--.-"


def test_tx_code_prosign_phrase():
    assert tx_code("[") == "--.- .-. --.."


def test_tx_code_unknown_is_none():
    assert tx_code("#") is None


def test_tx_code_rejects_strings():
    with pytest.raises(ValueError):
        tx_code("ab")


def test_rx_lookup_first_entry_wins():
    assert rx_lookup(".-.-.") == "<AR>"
    assert rx_lookup(".-.-.-") == "<STOP>"


def test_rx_lookup_phrase_and_unknown():
    assert rx_lookup(".....-.-.") == "5nn"
    assert rx_lookup("......") is None


@pytest.mark.parametrize("char", string.ascii_lowercase + string.digits)
def test_letters_and_digits_round_trip(char):
    assert rx_lookup(tx_code(char)) == char.upper()


@pytest.mark.parametrize("char", sorted({c for c, _ in TX_TABLE}))
def test_tx_codes_only_use_keying_symbols(char):
    code = tx_code(char)
    assert code
    assert set(code) <= {".", "-", " "}


def test_every_rx_pattern_resolves():
    for _, code in RX_TABLE:
        assert rx_lookup(code) is not None
        assert rx_lookup(code) in {text for text, c in RX_TABLE if c == code}