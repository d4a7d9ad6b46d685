from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable

from tiksync.sources.queue import QueueDirectory

from .sync import FileState, SyncService


class Worker:
    """Single-instance polling loop over the queue directory.

    Files are processed one at a time. A file whose parse was aborted stays in
    the queue for an operator and is not picked up again by this process.
    """

    def __init__(
        self,
        queue: QueueDirectory,
        service: SyncService,
        logger: logging.Logger | logging.LoggerAdapter,
        poll_interval_sec: float = 300.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.queue = queue
        self.service = service
        self.logger = logger
        self.poll_interval_sec = poll_interval_sec
        self._sleep = sleep
        self._rejected: set[Path] = set()

    def run_once(self) -> list[dict[str, Any]]:
        results = []
        for path in self.queue.pending():
            if path in self._rejected:
                continue
            stats = self.service.process_file(path)
            if stats["status"] == FileState.ABORTED.value:
                self._rejected.add(path)
            results.append(stats)
        return results

    def run(self, once: bool = False, max_passes: int | None = None) -> list[dict[str, Any]]:
        self.logger.info("Worker started, watching %s", self.queue.path)
        processed: list[dict[str, Any]] = []
        passes = 0
        while True:
            results = self.run_once()
            processed.extend(results)
            passes += 1
            if once or (max_passes is not None and passes >= max_passes):
                break
            if not results:
                self.logger.debug("No files in queue, sleeping for %s seconds", self.poll_interval_sec)
                self._sleep(self.poll_interval_sec)
        self.logger.info("Worker stopped after %s pass(es), %s file(s) handled", passes, len(processed))
        return processed
