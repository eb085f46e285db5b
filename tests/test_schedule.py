import http.server
import json
import socket
import threading

import pytest

from ytdatanode.base58 import b58encode
from ytdatanode.schedule import (
    NodeAddr,
    fetch_address_book,
    nodes_for_round,
    parse_address_book,
    parse_go_list,
    parse_java_list,
)

PEER_A = b58encode(b"\x12\x20" + bytes(32))
PEER_B = b58encode(b"\x12\x20" + bytes(range(32)))
ADDR = "/ip4/172.17.0.2/tcp/9001"


def test_parse_go_list_round_trip():
    data = [{"ip": [ADDR, "/ip4/10.0.0.1/tcp/9001"], "id": "6500", "nodeid": PEER_A}]
    nodes = parse_go_list(data)
    assert nodes == [NodeAddr(dn_num=6500, node_id=PEER_A, addrs=[ADDR])]


def test_parse_java_list_round_trip():
    data = [{"ip": ADDR, "id": "7", "nodeid": PEER_B}]
    assert parse_java_list(data) == [NodeAddr(dn_num=7, node_id=PEER_B, addrs=[ADDR])]


def test_bad_entries_are_skipped():
    data = [
        {"ip": [ADDR], "id": "1", "nodeid": "not-a-peer-0"},
        {"ip": ["garbage"], "id": "2", "nodeid": PEER_A},
        {"ip": [], "id": "3", "nodeid": PEER_A},
        {"ip": [ADDR], "id": "4", "nodeid": PEER_B},
    ]
    nodes = parse_go_list(data)
    assert [node.dn_num for node in nodes] == [4]


def test_unparsable_id_becomes_zero():
    nodes = parse_java_list([{"ip": ADDR, "id": "abc", "nodeid": PEER_A}])
    assert nodes[0].dn_num == 0


def test_parse_address_book_selects_format():
    go_body = json.dumps([{"ip": [ADDR], "id": "5", "nodeid": PEER_A}])
    java_body = json.dumps([{"ip": ADDR, "id": "5", "nodeid": PEER_A}])
    assert parse_address_book(go_body, "go") == parse_address_book(java_body, "java")


def test_parse_address_book_rejects_bad_json():
    with pytest.raises(ValueError):
        parse_address_book("not json", "go")
    with pytest.raises(ValueError):
        parse_address_book(json.dumps([{"ip": ADDR, "id": "5", "nodeid": PEER_A}]), "go")


def test_nodes_for_round_partitions_nodes():
    nodes = [NodeAddr(dn_num=n, node_id=PEER_A, addrs=[ADDR]) for n in range(6490, 6530)]
    times = 10
    rounds = [nodes_for_round(nodes, 6500, times, i) for i in range(times)]
    selected = [node.dn_num for group in rounds for node in group]
    assert sorted(selected) == list(range(6500, 6530))
    for index, group in enumerate(rounds):
        assert all(node.dn_num % times == index for node in group)


def test_nodes_for_round_rejects_zero_times():
    with pytest.raises(ValueError):
        nodes_for_round([], 0, 0, 0)


def _serve(body: bytes):
    class Handler(http.server.BaseHTTPRequestHandler):
        def do_GET(self):
            status = 200 if self.path == "/active_nodes" else 404
            self.send_response(status)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, *args):
            pass

    server = http.server.HTTPServer(("127.0.0.1", 0), Handler)
    threading.Thread(target=server.serve_forever, daemon=True).start()
    return server


def test_fetch_address_book_from_server():
    body = json.dumps([{"ip": ADDR, "id": "9", "nodeid": PEER_B}]).encode()
    server = _serve(body)
    try:
        nodes = fetch_address_book("127.0.0.1", server.server_address[1], "java")
    finally:
        server.shutdown()
        server.server_close()
    assert nodes == [NodeAddr(dn_num=9, node_id=PEER_B, addrs=[ADDR])]


def test_fetch_address_book_unreachable_gives_empty():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    assert fetch_address_book("127.0.0.1", port) == []