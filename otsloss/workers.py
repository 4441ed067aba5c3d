"""Worker classes for thread-pool tasks and the shared report collector."""

import logging

from PySide6.QtCore import QMutex, QRunnable

from otsloss.models import Connection, LossRecord

logger = logging.getLogger(__name__)


class ReportCollector:
    """Collects per-connection fragments from concurrent workers.

    Every access goes through one QMutex. Only the first fatal error is kept;
    fragments arriving after it are dropped.
    """

    def __init__(self):
        self._mutex = QMutex()
        self._records: list[LossRecord] = []
        self._skipped: list[str] = []
        self._error: Exception | None = None

    def add_fragment(self, connection: Connection, records: list[LossRecord]) -> None:
        self._mutex.lock()
        try:
            if self._error is None:
                self._records.extend(records)
        finally:
            self._mutex.unlock()
        logger.debug("Fragment collected: OTS %s, %d records", connection.label, len(records))

    def skip(self, connection: Connection) -> None:
        self._mutex.lock()
        try:
            self._skipped.append(connection.label)
        finally:
            self._mutex.unlock()

    def fail(self, error: Exception) -> None:
        self._mutex.lock()
        try:
            if self._error is None:
                self._error = error
        finally:
            self._mutex.unlock()

    @property
    def records(self) -> list[LossRecord]:
        self._mutex.lock()
        try:
            return list(self._records)
        finally:
            self._mutex.unlock()

    @property
    def skipped(self) -> list[str]:
        self._mutex.lock()
        try:
            return list(self._skipped)
        finally:
            self._mutex.unlock()

    @property
    def error(self) -> Exception | None:
        self._mutex.lock()
        try:
            return self._error
        finally:
            self._mutex.unlock()


class TaskWorker(QRunnable):
    """Runs one callable in a pool thread and keeps its outcome.

    The owner holds a reference and reads result/error after the pool has
    drained, so auto-deletion is disabled.
    """

    def __init__(self, name: str, fn, *args):
        super().__init__()
        self.setAutoDelete(False)
        self.name = name
        self.fn = fn
        self.args = args
        self.result = None
        self.error: Exception | None = None

    def run(self):
        """Execute the task in a background thread."""
        try:
            logger.debug("Worker starting: %s", self.name)
            self.result = self.fn(*self.args)
            logger.debug("Worker completed: %s", self.name)
        except Exception as e:
            logger.exception("Worker exception: %s, error=%s", self.name, str(e))
            self.error = e


class ConnectionWorker(QRunnable):
    """Processes one connection and hands its fragment to the collector."""

    def __init__(self, process, connection: Connection, object_id: str | None, collector: ReportCollector):
        super().__init__()
        self.setAutoDelete(False)
        self.process = process
        self.connection = connection
        self.object_id = object_id
        self.collector = collector

    def run(self):
        """Execute the per-connection pipeline in a background thread."""
        try:
            records = self.process(self.connection, self.object_id)
        except Exception as e:
            logger.exception("Connection worker exception: OTS %s, error=%s", self.connection.label, str(e))
            self.collector.fail(e)
            return

        if records is None:
            self.collector.skip(self.connection)
        else:
            self.collector.add_fragment(self.connection, records)
