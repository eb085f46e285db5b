"""Storage node ownership data and the node's advertised address list."""

from __future__ import annotations

import ipaddress
import logging
import os
import time
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass

log = logging.getLogger(__name__)

SELF_IP_URL = "http://123.57.81.177/self-ip"
DEFAULT_PORT = "9001"


@dataclass
class Owner:
    """Ownership information of a storage node."""

    id: str = ""
    buy_space: int = 0
    hdd: int = 0


def format_tcp_addr(ip: str, port: str | int) -> str:
    """Build an /ip4/<ip>/tcp/<port> address; raise ValueError if invalid."""
    addr = f"/ip4/{ip}/tcp/{port}".replace("\n", "")
    parts = addr.split("/")
    if len(parts) != 5:
        raise ValueError(f"invalid address {addr!r}")
    ipaddress.IPv4Address(parts[2])
    if not parts[4].isdigit() or not 0 <= int(parts[4]) <= 65535:
        raise ValueError(f"invalid port in {addr!r}")
    return addr


def _fetch_public_ip() -> str:
    with urllib.request.urlopen(SELF_IP_URL, timeout=10) as resp:
        return resp.read().decode("utf-8", errors="replace")


class AddrsManager:
    """Caches the node's addresses, adding the public one, for ttl seconds."""

    def __init__(
        self,
        host_addrs: Callable[[], list[str]],
        ttl: float = 10.0,
        ip_lookup: Callable[[], str | bytes] = _fetch_public_ip,
    ) -> None:
        self.host_addrs = host_addrs
        self.ttl = ttl
        self.ip_lookup = ip_lookup
        self._addrs: list[str] | None = None
        self._update_time = time.monotonic()

    def update_addrs(self) -> None:
        """Rebuild the address list from the host and the public IP lookup."""
        self._addrs = list(self.host_addrs())
        port = os.environ.get("nat_port", DEFAULT_PORT)
        try:
            public_ip = self.ip_lookup()
        except OSError as exc:
            local_ip = os.environ.get("local_host_ip")
            if local_ip is not None:
                try:
                    self._addrs.append(format_tcp_addr(local_ip, port))
                except ValueError as err:
                    log.warning("format local ip fail: %s %s", err, local_ip)
            log.warning("get public ip fail: %s", exc)
            return
        if isinstance(public_ip, bytes):
            public_ip = public_ip.decode("utf-8", errors="replace")
        try:
            self._addrs.append(format_tcp_addr(public_ip, port))
        except ValueError as err:
            log.warning("format public ip fail: %s %s", err, public_ip)
        self._update_time = time.monotonic()

    def get_addrs(self) -> list[str]:
        if self._addrs is None or self.ttl < time.monotonic() - self._update_time:
            self.update_addrs()
        return list(self._addrs or [])

    def get_addr_strings(self) -> list[str]:
        return [str(addr) for addr in self.get_addrs()]