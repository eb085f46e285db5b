"""Rebuild task queueing, reply grouping and the rebuild concurrency pool."""

from __future__ import annotations

import enum
import queue
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass, field

MAX_TASK_NUM = 1000
MAX_REPLY_NUM = 1000
MAX_REPLY_WAIT_TIME = 60.0

TOTAL_CAPACITY = 2000
DEFAULT_CONCURRENT_SHARDS = 1
DEFAULT_CONCURRENT_TASKS = 10
TASKS_PER_SHARD_SLOT = 10

HASH_CONFLICT_ERROR = "YTFS: hash key conflict happens"

_SN_ID_SLICE = slice(12, 14)
_MSG_ID_LENGTH = 2
_NANOS_PER_SECOND = 1_000_000_000


class TaskKind(enum.Enum):
    """How a rebuild task is carried out."""

    RC = "rc"  # Reed-Solomon rebuild
    LRC = "lrc"  # LRC rebuild
    CP = "cp"  # copy from a replica


# Two-byte message id prefixes that select a task kind; any other prefix
# means a replica copy task. Filled in by the messaging layer.
TASK_PREFIXES: dict[bytes, TaskKind] = {}


@dataclass
class Task:
    """A queued rebuild task as received from a block producer."""

    sn_id: int
    data: bytes
    expired_time: int


@dataclass
class TaskMsgResult:
    """Outcome of one rebuild task; res is 0 on success and 1 on failure."""

    id: bytes
    res: int
    bpid: int = 0
    expired_time: int = 0


@dataclass
class MultiTaskOpResult:
    """Results of several tasks reported to one block producer at once."""

    ids: list[bytes] = field(default_factory=list)
    res: list[int] = field(default_factory=list)
    expired_time: int = 0
    node_id: int = 0


class TaskQueue:
    """A bounded task queue that drops tasks when it is full."""

    def __init__(self, maxsize: int = MAX_TASK_NUM) -> None:
        self._queue: queue.Queue[Task] = queue.Queue(maxsize=maxsize)

    def put(self, task: Task) -> bool:
        """Queue a task; return False if it was dropped because the queue is full."""
        try:
            self._queue.put_nowait(task)
        except queue.Full:
            return False
        return True

    def get(self, timeout: float | None = None) -> Task:
        """Take the next task, waiting up to timeout seconds; raise queue.Empty."""
        return self._queue.get(timeout=timeout)

    def __len__(self) -> int:
        return self._queue.qsize()


def bytes_to_int64(data: bytes) -> int:
    """Read a big-endian signed 64-bit integer; fewer than 8 bytes give 0."""
    if len(data) < 8:
        return 0
    return int.from_bytes(data[:8], "big", signed=True)


def sn_id_from_task(task: bytes) -> int:
    """Return the super node id stored big-endian at bytes 12..14 of a task."""
    raw = task[_SN_ID_SLICE]
    if len(raw) != 2:
        raise ValueError("task too short to hold a super node id")
    return int.from_bytes(raw, "big")


def queue_task_list(
    queue: TaskQueue, tasks: Iterable[bytes], expired_time: int, now: float | None = None
) -> int:
    """Queue every task of a multi-task message unless it has expired.

    Returns the number of tasks accepted by the queue.
    """
    if now is None:
        now = time.time()
    accepted = 0
    for raw in tasks:
        if int(now) > expired_time:
            continue
        if queue.put(Task(sn_id=sn_id_from_task(raw), data=bytes(raw), expired_time=expired_time)):
            accepted += 1
    return accepted


def classify_task(data: bytes) -> tuple[TaskKind, bytes]:
    """Split a task into its kind and its payload after the message id."""
    if len(data) < _MSG_ID_LENGTH:
        raise ValueError("task too short to hold a message id")
    prefix = bytes(data[:_MSG_ID_LENGTH])
    return TASK_PREFIXES.get(prefix, TaskKind.CP), bytes(data[_MSG_ID_LENGTH:])


def group_replies(results: Iterable[TaskMsgResult], node_id: int) -> dict[int, MultiTaskOpResult]:
    """Group task results by the block producer they are reported to."""
    grouped: dict[int, MultiTaskOpResult] = {}
    for result in results:
        reply = grouped.setdefault(result.bpid, MultiTaskOpResult(node_id=node_id))
        reply.ids.append(result.id)
        reply.res.append(result.res)
        reply.expired_time = result.expired_time
    return grouped


def is_conflict_error(message: str) -> bool:
    """Tell whether a storage error only means the shard is already stored."""
    return message == HASH_CONFLICT_ERROR


def compute_pool_size(config_weight: int, fill_token_interval: float) -> tuple[int, int]:
    """Return (concurrent shard fetches, concurrent tasks) for the rebuild pool.

    The configured weight is capped by half the token fill rate per second,
    by the pool capacity, and raised to at least one.
    """
    interval_ns = round(fill_token_interval * _NANOS_PER_SECOND)
    if interval_ns <= 0:
        raise ValueError("fill token interval must be positive")
    token_weight = ((_NANOS_PER_SECOND // interval_ns) // 2) & 0xFFFF
    concurrent = config_weight & 0xFFFF
    if token_weight < concurrent:
        concurrent = token_weight
    if concurrent > TOTAL_CAPACITY:
        concurrent = TOTAL_CAPACITY
    if concurrent == 0:
        return 1, DEFAULT_CONCURRENT_TASKS
    return concurrent, concurrent * TASKS_PER_SHARD_SLOT


class ConcurrencyPool:
    """A resizable pool of permits bounded by a fixed capacity."""

    def __init__(self, capacity: int = TOTAL_CAPACITY, size: int = DEFAULT_CONCURRENT_SHARDS) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._check_size(size)
        self._size = size
        self._available = size
        self._cond = threading.Condition()

    def _check_size(self, size: int) -> None:
        if not 0 <= size <= self.capacity:
            raise ValueError(f"pool size {size} outside 0..{self.capacity}")

    @property
    def size(self) -> int:
        with self._cond:
            return self._size

    @property
    def available(self) -> int:
        """Free permits; negative while a shrink waits for permits to come back."""
        with self._cond:
            return self._available

    def acquire(self, timeout: float | None = None) -> bool:
        """Take a permit, waiting up to timeout seconds; return whether one was taken."""
        with self._cond:
            if not self._cond.wait_for(lambda: self._available > 0, timeout=timeout):
                return False
            self._available -= 1
            return True

    def release(self) -> None:
        """Return a permit taken with acquire."""
        with self._cond:
            if self._available >= self._size:
                raise ValueError("release without a matching acquire")
            self._available += 1
            self._cond.notify()

    def resize(self, new_size: int) -> None:
        """Change the number of permits; permits in use are absorbed on release."""
        self._check_size(new_size)
        with self._cond:
            self._available += new_size - self._size
            self._size = new_size
            self._cond.notify_all()