"""Base58 encoding (Bitcoin alphabet) and helpers built on it."""

from __future__ import annotations

from collections.abc import Iterable

ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_INDEX = {char: value for value, char in enumerate(ALPHABET)}

# Prefix byte of a WIF-encoded private key.
_EOS_KEY_PREFIX = b"\x80"
_PRIVATE_KEY_LENGTH = 32


def b58encode(data: bytes) -> str:
    """Encode bytes as a base58 string."""
    data = bytes(data)
    stripped = data.lstrip(b"\x00")
    leading = len(data) - len(stripped)
    number = int.from_bytes(stripped, "big")
    chars = []
    while number:
        number, remainder = divmod(number, 58)
        chars.append(ALPHABET[remainder])
    return "1" * leading + "".join(reversed(chars))


def b58decode(text: str) -> bytes:
    """Decode a base58 string; raise ValueError on empty or invalid input."""
    if not text:
        raise ValueError("zero length string")
    number = 0
    for char in text:
        try:
            digit = _INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base58 character {char!r}") from None
        number = number * 58 + digit
    leading = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\x00" * leading + body


def libp2p_key_to_eos_key(privkey: str) -> str:
    """Turn a base58 libp2p private key into the EOS (WIF-style) form."""
    raw = b58decode(privkey)
    if len(raw) < _PRIVATE_KEY_LENGTH:
        raise ValueError("private key too short")
    return b58encode(_EOS_KEY_PREFIX + raw[:_PRIVATE_KEY_LENGTH])


def ids_to_string(ids: Iterable[bytes]) -> str:
    """Join the base58 forms of several ids with commas."""
    return ",".join(b58encode(item) for item in ids)