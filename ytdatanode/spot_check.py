"""Spot checks of stored shards, run with a small worker pool."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from .base58 import b58encode

log = logging.getLogger(__name__)

_WORKERS = 10
_RETRIES = 5


@dataclass
class SpotCheckTask:
    id: int
    node_id: str = ""
    vhf: bytes = b""


@dataclass
class SpotChecker:
    """Runs a handler over every task and collects the ids that fail."""

    task_list: list[SpotCheckTask] = field(default_factory=list)
    task_handler: Callable[[SpotCheckTask], bool] | None = None
    invalid_node_list: list[int] = field(default_factory=list)
    progress: int = 0
    retry_delay: float = 0.5
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def do(self) -> None:
        """Check every task in the list and wait for all of them."""
        with ThreadPoolExecutor(max_workers=_WORKERS) as pool:
            list(pool.map(self.check, self.task_list))

    def check(self, task: SpotCheckTask) -> None:
        """Check one task, retrying a failure before marking it invalid."""
        if self.task_handler is None:
            return
        with self._lock:
            result = self.task_handler(task)
            self.progress += 1
            if result:
                return
            for attempt in range(_RETRIES):
                log.info("spot check retry %d %s", attempt, b58encode(task.vhf))
                time.sleep(self.retry_delay)
                if self.task_handler(task):
                    return
            self.invalid_node_list.append(task.id)