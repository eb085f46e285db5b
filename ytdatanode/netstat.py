"""Network traffic totals read from the kernel's per-interface counters."""

from __future__ import annotations

import re
from collections.abc import Iterable

NET_DEV_PATH = "/proc/net/dev"

_SPACES = re.compile(" +")
_RX_FIELD = 1
_TX_FIELD = 9


def _field(fields: list[str], index: int) -> int:
    try:
        return int(fields[index])
    except (IndexError, ValueError):
        return 0


def parse_net_dev(lines: Iterable[str]) -> tuple[int, int]:
    """Sum received and transmitted bytes over all interfaces.

    Header lines (those without a colon) are skipped; unparsable counters
    count as zero.
    """
    rx = tx = 0
    for line in lines:
        parts = line.rstrip("\r\n").split(":")
        if len(parts) < 2:
            continue
        fields = _SPACES.split(parts[1])
        rx += _field(fields, _RX_FIELD)
        tx += _field(fields, _TX_FIELD)
    return rx, tx


def get_traffic(direction: str, path: str = NET_DEV_PATH) -> int:
    """Return total received ("r"/"R") or transmitted ("t"/"T") bytes.

    Returns 0 for an unknown direction or when the counters cannot be read.
    """
    try:
        with open(path, encoding="utf-8", errors="replace") as stream:
            rx, tx = parse_net_dev(stream)
    except OSError:
        return 0
    if direction in ("r", "R"):
        return rx
    if direction in ("t", "T"):
        return tx
    return 0