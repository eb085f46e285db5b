"""Locations of the node's files, address checks and small stream helpers."""

from __future__ import annotations

import ipaddress
import os
from pathlib import Path
from typing import IO, AnyStr

_DEFAULT_READ_SIZE = 1024


def get_current_user_home() -> str:
    """Return the current user's home directory, or "" if unknown."""
    try:
        return str(Path.home())
    except RuntimeError:
        return ""


def get_ytfs_path() -> str:
    """Return the storage directory; the ytfs_path variable overrides it."""
    override = os.environ.get("ytfs_path")
    if override is not None:
        return override
    return get_current_user_home() + "/YTFS"


def get_config_path() -> str:
    """Return the path of the node's config file."""
    return get_ytfs_path() + "/config.json"


def path_exists(path: str | os.PathLike) -> bool:
    """Report whether a path exists; other stat errors propagate."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


def open_log_file(name: str) -> IO[str]:
    """Open a log file in the storage directory for appending."""
    return open(os.path.join(get_ytfs_path(), name), "a", encoding="utf-8")


def _is_link_local_multicast(ip: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    if isinstance(ip, ipaddress.IPv4Address):
        return ip in ipaddress.IPv4Network("224.0.0.0/24")
    packed = ip.packed
    return packed[0] == 0xFF and packed[1] & 0x0F == 0x02


def is_public_ip(ip: str | ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    """Tell whether an address is a public IPv4 address."""
    address = ipaddress.ip_address(ip)
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    if address.is_loopback or _is_link_local_multicast(address) or address.is_link_local:
        return False
    if not isinstance(address, ipaddress.IPv4Address):
        return False
    first, second = address.packed[0], address.packed[1]
    if first == 10:
        return False
    if first == 172 and 16 <= second <= 31:
        return False
    if first == 192 and second == 168:
        return False
    return True


def read_line(stream: IO[AnyStr], max_size: int = _DEFAULT_READ_SIZE) -> AnyStr:
    """Read one chunk of at most max_size from a stream.

    Raises EOFError when the stream is exhausted.
    """
    if max_size <= 0:
        max_size = _DEFAULT_READ_SIZE
    reader = getattr(stream, "read1", stream.read)
    while True:
        chunk = reader(max_size)
        if chunk is None:
            continue
        if not chunk:
            raise EOFError("end of stream")
        return chunk


def read_string_line(stream: IO, max_size: int = _DEFAULT_READ_SIZE) -> str:
    """Read one chunk as text; return "" on end of stream or read error."""
    try:
        chunk = read_line(stream, max_size)
    except (EOFError, OSError):
        return ""
    if isinstance(chunk, bytes):
        return chunk.decode("utf-8", errors="replace")
    return chunk