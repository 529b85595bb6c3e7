"""Base64 encoding and lenient decoding of short text messages."""

import base64

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_INDEX = {char: value for value, char in enumerate(ALPHABET)}


def _to_bytes(text):
    data = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    # The text ends at the first NUL, as a C string would.
    return data.split(b"\0", 1)[0]


def b64_encode(text):
    """Return the padded base64 form of ``text`` (str or bytes)."""
    return base64.b64encode(_to_bytes(text)).decode("ascii")


def _decode_group(group):
    g = group + [0] * (4 - len(group))
    raw = bytes(
        (
            ((g[0] << 2) | (g[1] >> 4)) & 0xFF,
            ((g[1] << 4) | (g[2] >> 2)) & 0xFF,
            ((g[2] << 6) | g[3]) & 0xFF,
        )
    )
    # A zero byte ends the text contributed by this group.
    return raw.split(b"\0", 1)[0]


def b64_decode(text):
    """Decode base64 text, skipping characters outside the alphabet.

    Decoding stops at the first ``=``; an unfinished group at the end of the
    input without padding is ignored.
    """
    out = bytearray()
    group = []
    for char in text:
        if char == "=":
            out += _decode_group(group)
            break
        value = _INDEX.get(char)
        if value is None:
            continue
        group.append(value)
        if len(group) == 4:
            out += _decode_group(group)
            group = []
    return out.decode("utf-8", errors="replace")