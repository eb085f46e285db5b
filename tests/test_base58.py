import pytest

from ytdatanode.base58 import b58decode, b58encode, ids_to_string, libp2p_key_to_eos_key


def test_known_value():
    assert b58encode(b"hello world") == "StV1DL6CwTryKyV"
    assert b58decode("StV1DL6CwTryKyV") == b"hello world"


@pytest.mark.parametrize(
    "data",
    [b"\x00", b"\x00\x00\x01", b"\xff" * 40, bytes(range(256)), b"abc"],
)
def test_round_trip(data):
    assert b58decode(b58encode(data)) == data


def test_leading_zero_bytes_become_ones():
    encoded = b58encode(b"\x00\x00\x07")
    assert encoded.startswith("11")
    assert b58decode(encoded)[:2] == b"\x00\x00"


def test_empty_encode_and_decode():
    assert b58encode(b"") == ""
    with pytest.raises(ValueError):
        b58decode("")


@pytest.mark.parametrize("bad", ["0abc", "OOO", "Il", "ab c"])
def test_decode_rejects_invalid_characters(bad):
    with pytest.raises(ValueError):
        b58decode(bad)


def test_libp2p_key_to_eos_key():
    raw = bytes(range(1, 40))
    result = b58decode(libp2p_key_to_eos_key(b58encode(raw)))
    assert result[0] == 0x80
    assert result[1:] == raw[:32]
    assert len(result) == 33


def test_libp2p_key_to_eos_key_short_key():
    with pytest.raises(ValueError):
        libp2p_key_to_eos_key(b58encode(b"\x01\x02\x03"))


def test_ids_to_string_round_trip():
    ids = [b"first", b"\x00second", b"third-id"]
    parts = ids_to_string(ids).split(",")
    assert [b58decode(part) for part in parts] == ids


def test_ids_to_string_empty():
    assert ids_to_string([]) == ""