from types import SimpleNamespace
from unittest import mock

from ytdatanode.runtime_status import RuntimeStatus


def test_update_with_known_readings():
    with mock.patch("psutil.cpu_percent", return_value=[10.0, 20.0, 30.0]), \
            mock.patch("psutil.virtual_memory", return_value=SimpleNamespace(percent=42.9)):
        snapshot = RuntimeStatus().update()
    assert snapshot.cpu == [10, 20, 30]
    assert snapshot.av_cpu == 20
    assert snapshot.mem == 42


def test_update_without_cpus_keeps_average():
    status = RuntimeStatus(av_cpu=7)
    with mock.patch("psutil.cpu_percent", return_value=[]), \
            mock.patch("psutil.virtual_memory", return_value=SimpleNamespace(percent=1.0)):
        snapshot = status.update()
    assert snapshot.cpu == []
    assert snapshot.av_cpu == 7


def test_snapshot_is_independent():
    status = RuntimeStatus()
    snapshot = status.update()
    snapshot.cpu.append(999)
    assert 999 not in status.cpu


def test_real_readings_are_consistent():
    snapshot = RuntimeStatus().update()
    assert 0 <= snapshot.mem <= 100
    if snapshot.cpu:
        assert snapshot.av_cpu == sum(snapshot.cpu) // len(snapshot.cpu)
    assert all(value >= 0 for value in snapshot.cpu)