"""
Append-only audit sinks.

Provides storage implementations for audit records:
- InMemoryAuditSink: tests and single-process deployments
- JsonlAuditSink: one JSON document per line, one file
- AsyncAuditSink: fire-and-forget wrapper preserving emission order
"""

from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Tuple

from brickgate.errors import AuditWriteError
from brickgate.models import AuditRecord

logger = logging.getLogger(__name__)


class AuditSink(ABC):
    """Append-only destination for audit records. Records are never mutated."""

    @abstractmethod
    def append(self, record: AuditRecord) -> None:
        """Append a record."""

    @abstractmethod
    def records(self) -> List[AuditRecord]:
        """All records, in emission order."""

    def flush(self) -> None:
        """Block until every appended record is durable."""

    def close(self) -> None:
        self.flush()


class InMemoryAuditSink(AuditSink):
    """Thread-safe in-memory sink."""

    def __init__(self) -> None:
        self._records: List[AuditRecord] = []
        self._lock = threading.Lock()

    def append(self, record: AuditRecord) -> None:
        with self._lock:
            self._records.append(record)

    def records(self) -> List[AuditRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        return len(self.records())


class JsonlAuditSink(AuditSink):
    """
    File-based sink storing records in JSON Lines format.

    Each append writes and flushes one line under a lock, so concurrent
    writers never interleave partial records.
    """

    def __init__(self, path: str | Path):
        """
        Initialize file storage.

        Args:
            path: File to append audit records to (parent directories are created)
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        logger.info(f"JsonlAuditSink writing to {self.path}")

    def append(self, record: AuditRecord) -> None:
        line = record.model_dump_json()
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
                f.flush()

    def records(self) -> List[AuditRecord]:
        if not self.path.exists():
            return []
        with self._lock:
            with open(self.path, "r", encoding="utf-8") as f:
                lines = [line for line in f if line.strip()]
        return [AuditRecord.model_validate_json(line) for line in lines]


_STOP = object()


class AsyncAuditSink(AuditSink):
    """
    Asynchronous wrapper around another sink.

    Records are handed to a single background worker through a FIFO queue,
    so emission order (and therefore per-request order) is preserved. A
    record is never dropped silently: delivery failures are kept and raised
    as AuditWriteError from the next flush() or close().
    """

    def __init__(self, inner: AuditSink, max_queue: int = 0):
        self.inner = inner
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=max_queue)
        self._failed: List[Tuple[AuditRecord, BaseException]] = []
        self._failed_lock = threading.Lock()
        self._closed = False
        self._worker = threading.Thread(target=self._run, name="brickgate-audit", daemon=True)
        self._worker.start()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                try:
                    self.inner.append(item)  # type: ignore[arg-type]
                except Exception as e:
                    logger.error(f"Audit write failed for {item}: {e}")
                    with self._failed_lock:
                        self._failed.append((item, e))  # type: ignore[arg-type]
            finally:
                self._queue.task_done()

    def append(self, record: AuditRecord) -> None:
        if self._closed:
            raise AuditWriteError("audit sink is closed", [record])
        self._queue.put(record)

    def flush(self) -> None:
        self._queue.join()
        self.inner.flush()
        with self._failed_lock:
            failed, self._failed = self._failed, []
        if failed:
            raise AuditWriteError(
                f"audit sink failed: {failed[0][1]}",
                [record for record, _ in failed],
            )

    def records(self) -> List[AuditRecord]:
        self.flush()
        return self.inner.records()

    def close(self, timeout: Optional[float] = None) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(_STOP)
        self._worker.join(timeout)
        self.flush()
        self.inner.close()
