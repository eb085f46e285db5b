"""Address book of active data nodes and the rounds of self-verify orders."""

from __future__ import annotations

import json
import logging
import urllib.request
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .base58 import b58decode
from .relay import RelayAddrError, _parse_multiaddr

log = logging.getLogger(__name__)

_UINT32_MAX = 0xFFFFFFFF


@dataclass
class NodeAddr:
    """A data node's number, peer id and addresses."""

    dn_num: int
    node_id: str
    addrs: list[str] = field(default_factory=list)


def _parse_dn_num(text: str) -> int:
    if not text.isascii() or not text.isdigit():
        return 0
    return min(int(text), _UINT32_MAX)


def _valid_peer_id(text: str) -> bool:
    try:
        raw = b58decode(text)
    except ValueError:
        return False
    return len(raw) >= 2 and raw[1] == len(raw) - 2


def _valid_multiaddr(text: str) -> bool:
    try:
        _parse_multiaddr(text)
    except RelayAddrError:
        return False
    return True


def _field(item: Any, name: str, kind: type, default: Any) -> Any:
    if not isinstance(item, dict):
        raise ValueError(f"expected an object, got {type(item).__name__}")
    value = item.get(name, default)
    if not isinstance(value, kind):
        raise ValueError(f"field {name!r} must be {kind.__name__}")
    return value


def _make_node(num: str, node_id: str, ip: str | None) -> NodeAddr | None:
    if not _valid_peer_id(node_id) or ip is None or not _valid_multiaddr(ip):
        return None
    return NodeAddr(dn_num=_parse_dn_num(num), node_id=node_id, addrs=[ip])


def parse_go_list(data: Iterable[Any]) -> list[NodeAddr]:
    """Build nodes from entries whose "ip" is a list; bad entries are skipped."""
    nodes = []
    for item in data:
        ips = _field(item, "ip", list, [])
        num = _field(item, "id", str, "")
        node_id = _field(item, "nodeid", str, "")
        first = ips[0] if ips else None
        if first is not None and not isinstance(first, str):
            raise ValueError("field 'ip' must hold strings")
        node = _make_node(num, node_id, first)
        if node is not None:
            nodes.append(node)
    return nodes


def parse_java_list(data: Iterable[Any]) -> list[NodeAddr]:
    """Build nodes from entries whose "ip" is a single string; bad entries are skipped."""
    nodes = []
    for item in data:
        ip = _field(item, "ip", str, "")
        num = _field(item, "id", str, "")
        node_id = _field(item, "nodeid", str, "")
        node = _make_node(num, node_id, ip)
        if node is not None:
            nodes.append(node)
    return nodes


def parse_address_book(data: str | bytes, code_type: str = "go") -> list[NodeAddr]:
    """Parse the super node's active node list; raise ValueError if it is not valid."""
    parsed = json.loads(data)
    if not isinstance(parsed, list):
        raise ValueError("active node list must be a JSON array")
    if code_type == "java":
        return parse_java_list(parsed)
    return parse_go_list(parsed)


def fetch_address_book(host: str, port: str | int, code_type: str = "go") -> list[NodeAddr]:
    """Download and parse the active node list; an unreachable server gives []."""
    url = f"http://{host}:{port}/active_nodes"
    log.info("url: %s", url)
    try:
        with urllib.request.urlopen(url, timeout=30) as response:
            body = response.read()
    except OSError as err:
        log.warning("fetch %s failed: %s", url, err)
        return []
    return parse_address_book(body, code_type)


def nodes_for_round(
    nodes: Iterable[NodeAddr], start_dn: int, times: int, round_index: int
) -> list[NodeAddr]:
    """Select the nodes from start_dn on whose number falls in this round."""
    if times <= 0:
        raise ValueError("times must be positive")
    return [
        node for node in nodes if node.dn_num >= start_dn and node.dn_num % times == round_index
    ]