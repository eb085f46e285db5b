from ytdatanode.netstat import get_traffic, parse_net_dev

SAMPLE = [
    "Inter-|   Receive                                                |  Transmit\n",
    " face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed\n",
    "    lo:  1000      10    0    0    0     0          0         0     2000      20    0    0    0     0       0          0\n",
    "  eth0:  3000      30    0    0    0     0          0         0     4000      40    0    0    0     0       0          0\n",
]


def test_parse_sums_interfaces():
    assert parse_net_dev(SAMPLE) == (1000 + 3000, 2000 + 4000)


def test_parse_skips_header_only():
    assert parse_net_dev(SAMPLE[:2]) == (0, 0)


def test_parse_bad_counters_count_as_zero():
    lines = ["  eth0:  abc 1 0 0 0 0 0 0 xyz 2\n", SAMPLE[2]]
    assert parse_net_dev(lines) == (1000, 2000)


def test_get_traffic_directions(tmp_path):
    dev = tmp_path / "dev"
    dev.write_text("".join(SAMPLE))
    rx, tx = parse_net_dev(SAMPLE)
    assert get_traffic("R", str(dev)) == rx
    assert get_traffic("r", str(dev)) == rx
    assert get_traffic("T", str(dev)) == tx
    assert get_traffic("t", str(dev)) == tx
    assert get_traffic("x", str(dev)) == 0


def test_get_traffic_missing_file(tmp_path):
    assert get_traffic("R", str(tmp_path / "absent")) == 0