"""Thread-safe counters describing the shard rebuild engine's activity."""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RecoverStat:
    """A snapshot of the rebuild counters.

    Roughly: rebuild_task == report_task, rebuild_task == success_rebuild +
    fail_rebuild, and get_shard_wk_cnt is the sum of the per-shard outcomes.
    """

    rebuild_task: int = field(default=0, metadata={"json": "RebuildTask"})
    concurrent_task: int = field(default=0, metadata={"json": "ConcurrentTask"})
    concurrent_get_shard: int = field(default=0, metadata={"json": "ConcurenGetShard"})
    success_rebuild: int = field(default=0, metadata={"json": "SuccessRebuild"})
    fail_rebuild: int = field(default=0, metadata={"json": "FailRebuild"})
    report_task: int = field(default=0, metadata={"json": "ReportTask"})
    get_shard_wk_cnt: int = field(default=0, metadata={"json": "getShardWkCnt"})
    fail_decode_task_id: int = field(default=0, metadata={"json": "failDecodeTaskID"})
    success_shard: int = field(default=0, metadata={"json": "Success"})
    fail_shard: int = field(default=0, metadata={"json": "FailShard"})
    fail_send_shard: int = field(default=0, metadata={"json": "FailSendShard"})
    fail_token: int = field(default=0, metadata={"json": "FailToken"})
    fail_conn: int = field(default=0, metadata={"json": "failConn"})
    fail_less_shard: int = field(default=0, metadata={"json": "failLessShard"})
    pass_judge: int = field(default=0, metadata={"json": "passJudge"})
    success_conn: int = field(default=0, metadata={"json": "sucessConn"})
    success_token: int = field(default=0, metadata={"json": "successToken"})

    def to_dict(self) -> dict[str, int]:
        """Return the counters keyed by their reporting (JSON) names."""
        return {f.metadata["json"]: getattr(self, f.name) for f in dataclasses.fields(self)}


COUNTER_NAMES = tuple(f.name for f in dataclasses.fields(RecoverStat))


class RecoverCounters:
    """Named counters guarded by a lock; snapshots come out as RecoverStat."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values = dict.fromkeys(COUNTER_NAMES, 0)

    def _check(self, name: str) -> None:
        if name not in self._values:
            raise KeyError(f"unknown counter {name!r}")

    def increment(self, name: str) -> int:
        """Add one to a counter and return its new value."""
        self._check(name)
        with self._lock:
            self._values[name] += 1
            return self._values[name]

    def decrement(self, name: str) -> int:
        """Subtract one from a counter and return its new value.

        Raises ValueError if the counter is already zero.
        """
        self._check(name)
        with self._lock:
            if self._values[name] == 0:
                raise ValueError(f"counter {name!r} is already zero")
            self._values[name] -= 1
            return self._values[name]

    def __getitem__(self, name: str) -> int:
        self._check(name)
        with self._lock:
            return self._values[name]

    def stat(self) -> RecoverStat:
        """Return a consistent snapshot of every counter."""
        with self._lock:
            return RecoverStat(**self._values)