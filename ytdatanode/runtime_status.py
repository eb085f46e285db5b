"""CPU and memory usage of the host."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field

import psutil

log = logging.getLogger(__name__)


@dataclass
class RuntimeStatus:
    """Per-CPU load, average CPU load and memory use, all in whole percent."""

    cpu: list[int] = field(default_factory=list)
    av_cpu: int = 0
    mem: int = 0

    def update(self) -> "RuntimeStatus":
        """Refresh the readings and return a snapshot of them."""
        percents = psutil.cpu_percent(interval=0, percpu=True)
        self.cpu = [int(value) for value in percents]
        total = sum(self.cpu)
        self.mem = int(psutil.virtual_memory().percent)
        if self.cpu:
            self.av_cpu = total // len(self.cpu)
        log.debug("cpu sum: %d over %d cpus", total, len(self.cpu))
        return dataclasses.replace(self, cpu=list(self.cpu))