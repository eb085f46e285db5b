"""Relay address management."""

from __future__ import annotations

import ipaddress
import re
from typing import Any

from .base58 import b58decode

_CIRCUIT_SUFFIX = re.compile(r"/p2p-.+$")

_VALUE_PROTOCOLS = {"ip4", "ip6", "tcp", "udp", "dns", "dns4", "dns6", "dnsaddr", "p2p", "ipfs"}
_FLAG_PROTOCOLS = {"quic", "p2p-circuit", "ws", "wss", "http", "https", "utp", "udt"}


class RelayAddrError(ValueError):
    """A relay address is missing or malformed."""


def _check_value(protocol: str, value: str) -> None:
    try:
        if protocol == "ip4":
            ipaddress.IPv4Address(value)
        elif protocol == "ip6":
            ipaddress.IPv6Address(value)
        elif protocol in ("tcp", "udp"):
            if not value.isdigit() or not 0 <= int(value) <= 65535:
                raise ValueError(value)
        elif protocol in ("p2p", "ipfs"):
            b58decode(value)
        elif not value:
            raise ValueError(value)
    except ValueError:
        raise RelayAddrError(f"invalid value {value!r} for /{protocol}") from None


def _parse_multiaddr(addr: str) -> list[tuple[str, str | None]]:
    text = addr.rstrip("/")
    if not text or not text.startswith("/"):
        raise RelayAddrError(f"invalid multiaddr {addr!r}")
    parts = iter(text.split("/")[1:])
    components: list[tuple[str, str | None]] = []
    for protocol in parts:
        if protocol in _FLAG_PROTOCOLS:
            components.append((protocol, None))
        elif protocol in _VALUE_PROTOCOLS:
            value = next(parts, None)
            if value is None:
                raise RelayAddrError(f"missing value for /{protocol}")
            _check_value(protocol, value)
            components.append((protocol, value))
        else:
            raise RelayAddrError(f"unknown protocol {protocol!r}")
    return components


def split_p2p_addr(addr: str) -> tuple[str, list[str]]:
    """Split a /.../p2p/<id> address into the peer id and its transport addresses."""
    components = _parse_multiaddr(addr)
    protocol, peer_id = components[-1]
    if protocol not in ("p2p", "ipfs") or peer_id is None:
        raise RelayAddrError(f"{addr!r} is not a p2p address")
    transport = "".join(
        f"/{name}" if value is None else f"/{name}/{value}" for name, value in components[:-1]
    )
    return peer_id, [transport] if transport else []


class RelayManager:
    """Holds the relay address the node advertises."""

    def __init__(self, host: Any = None) -> None:
        self.host = host
        self.peer: tuple[str, list[str]] | None = None
        self.addr = ""

    def update_addr(self, addr: str) -> None:
        """Record a new relay address and the peer it points to."""
        if not addr:
            raise RelayAddrError("addr required")
        self.addr = addr
        self.peer = split_p2p_addr(_CIRCUIT_SUFFIX.sub("", addr))

    def clear_relay_addrs(self) -> None:
        self.peer = None
        self.addr = ""

    def ping(self) -> None:
        """Relay keep-alive is disabled; the relay is dropped so it gets replaced."""
        self.clear_relay_addrs()