"""Morse code tables used for sending and for decoding received code."""

# Characters that can be sent. Prosigns and Q-codes are sent as several
# letters, separated by spaces inside the code. Where a character appears
# twice the later entry is the one used.
TX_TABLE = (
    ("~", " "),
    (" ", " "),
    ("a", ".-"),
    ("b", "-..."),
    ("c", "-.-."),
    ("d", "-.."),
    ("e", "."),
    ("f", "..-."),
    ("g", "--."),
    ("h", "...."),
    ("i", ".."),
    ("j", ".---"),
    ("k", "-.-"),
    ("l", ".-.."),
    ("m", "--"),
    ("n", "-."),
    ("o", "---"),
    ("p", ".--."),
    ("q", "--.-"),
    ("r", ".-."),
    ("s", "..."),
    ("t", "-"),
    ("u", "..-"),
    ("v", "...-"),
    ("w", ".--"),
    ("x", "-..-"),
    ("y", "-.--"),
    ("z", "--.."),
    ("1", ".----"),
    ("2", "..---"),
    ("3", "...--"),
    ("4", "....-"),
    ("5", "....."),
    ("6", "-...."),
    ("7", "--..."),
    ("8", "---.."),
    ("9", "----."),
    ("0", "-----"),
    (".", ".-.-.-"),
    (",", "--..--"),
    ("?", "..--.."),
    ("/", "-..-."),
    (" ", " "),
    ("=", "-...-"),
    ("<", ".-.-."),
    (">", "...-.-"),
    ("+", "--.- .-. .-.. ..--.."),
    ("(", "-.--."),
    ("[", "--.- .-. --.."),
    ("]", "--.- ... .-.."),
    (":", ".-..."),
    ("'", "--..--"),
    ("&", "-...-"),
)

# Patterns recognised on reception, including prosigns and run-together
# phrases. Where a pattern appears twice the earlier entry wins.
RX_TABLE = (
    ("~", " "),
    (" ", " "),
    ("A", ".-"),
    ("B", "-..."),
    ("C", "-.-."),
    ("D", "-.."),
    ("E", "."),
    ("F", "..-."),
    ("G", "--."),
    ("H", "...."),
    ("I", ".."),
    ("J", ".---"),
    ("K", "-.-"),
    ("L", ".-.."),
    ("M", "--"),
    ("N", "-."),
    ("O", "---"),
    ("P", ".--."),
    ("Q", "--.-"),
    ("R", ".-."),
    ("S", "..."),
    ("T", "-"),
    ("U", "..-"),
    ("V", "...-"),
    ("W", ".--"),
    ("X", "-..-"),
    ("Y", "-.--"),
    ("Z", "--.."),
    ("1", ".----"),
    ("2", "..---"),
    ("3", "...--"),
    ("4", "....-"),
    ("5", "....."),
    ("6", "-...."),
    ("7", "--..."),
    ("8", "---.."),
    ("9", "----."),
    ("0", "-----"),
    ("<STOP>", ".-.-.-"),
    ("<COMMA>", "--..--"),
    ("?", "..--.."),
    ("/", "-..-."),
    ("'", ".----."),
    ("!", "-.-.--"),
    (":", "---..."),
    ("-", "-....-"),
    ("_", "..--.-"),
    ("@", ".--.-."),
    ("<AR>", ".-.-."),
    ("<AS>", ".-..."),
    ("<STOP>", ".-.-."),
    ("<BT>", "-...-"),
    ("5nn", ".....-.-."),
    ("ur", "..-.-."),
)

_TX = dict(TX_TABLE)
_RX = {}
for _text, _code in RX_TABLE:
    _RX.setdefault(_code, _text)


def tx_code(char):
    """Return the code sent for ``char`` (case-insensitive), or None if unknown."""
    if len(char) != 1:
        raise ValueError(f"expected a single character, got {char!r}")
    return _TX.get(char.lower())


def rx_lookup(code):
    """Return the text for a received dot/dash pattern, or None if unknown."""
    return _RX.get(code)