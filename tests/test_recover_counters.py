import threading

import pytest

from ytdatanode.recover_counters import COUNTER_NAMES, RecoverCounters, RecoverStat


def test_new_counters_are_zero():
    stat = RecoverCounters().stat()
    assert stat == RecoverStat()
    assert all(value == 0 for value in stat.to_dict().values())


def test_increment_returns_new_value_and_shows_in_stat():
    counters = RecoverCounters()
    assert counters.increment("rebuild_task") == 1
    assert counters.increment("rebuild_task") == 2
    counters.increment("fail_conn")
    stat = counters.stat()
    assert stat.rebuild_task == 2
    assert stat.fail_conn == 1
    assert stat.success_rebuild == 0


def test_decrement_after_increment():
    counters = RecoverCounters()
    counters.increment("concurrent_task")
    counters.increment("concurrent_task")
    assert counters.decrement("concurrent_task") == 1
    assert counters["concurrent_task"] == 1


def test_decrement_below_zero_raises():
    counters = RecoverCounters()
    with pytest.raises(ValueError):
        counters.decrement("concurrent_get_shard")
    assert counters["concurrent_get_shard"] == 0


def test_unknown_counter_increment_raises():
    counters = RecoverCounters()
    with pytest.raises(KeyError):
        counters.increment("no_such_counter")
    assert counters.stat() == RecoverStat()


def test_unknown_counter_decrement_raises():
    counters = RecoverCounters()
    with pytest.raises(KeyError):
        counters.decrement("no_such_counter")
    assert counters.stat() == RecoverStat()


def test_snapshot_is_independent_of_later_changes():
    counters = RecoverCounters()
    counters.increment("pass_judge")
    snapshot = counters.stat()
    counters.increment("pass_judge")
    assert snapshot.pass_judge == 1
    assert counters.stat().pass_judge == 2


def test_to_dict_uses_reporting_names():
    counters = RecoverCounters()
    counters.increment("concurrent_get_shard")
    counters.increment("success_conn")
    counters.increment("get_shard_wk_cnt")
    counters.increment("success_shard")
    data = counters.stat().to_dict()
    assert data["ConcurenGetShard"] == 1
    assert data["sucessConn"] == 1
    assert data["getShardWkCnt"] == 1
    assert data["Success"] == 1
    assert data["RebuildTask"] == 0
    assert len(data) == len(COUNTER_NAMES)


def test_every_counter_can_be_incremented():
    counters = RecoverCounters()
    for name in COUNTER_NAMES:
        counters.increment(name)
    assert set(counters.stat().to_dict().values()) == {1}


def test_concurrent_increments_are_not_lost():
    counters = RecoverCounters()
    per_thread = 500
    workers = 8

    def work():
        for _ in range(per_thread):
            counters.increment("report_task")

    threads = [threading.Thread(target=work) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert counters.stat().report_task == per_thread * workers