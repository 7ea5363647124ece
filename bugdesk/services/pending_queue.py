"""
Pending Queue
=============
Local durable fallback for reports the remote store did not accept.

Storage layout — one named slot in a JSON file:

    {"pendingBugReports": [ {<report>}, {<report>}, ... ]}

Every enqueue reads the whole slot, appends one report and writes the slot
back (read-modify-write). Other top-level keys in the file are preserved.

Concurrency:
    - A process-local lock per file path serialises enqueues inside one
      server process, however many PendingQueue instances share the file
    - Separate processes sharing the file can still lose updates
    - Writes go through a temp file + os.replace so a crash never leaves a
      half-written file behind

There is no dequeue/flush here. Re-sending queued reports is an external
concern; load() exists for inspection only.
"""
import json
import logging
import os
import tempfile
import threading
from typing import List

from bugdesk.core.config import PENDING_QUEUE_PATH
from bugdesk.core.constants import PENDING_QUEUE_KEY
from bugdesk.core.exceptions import PersistenceError
from bugdesk.models.bug_report import BugReport

logger = logging.getLogger(__name__)

# One lock per queue file, shared by every PendingQueue pointing at it
_PATH_LOCKS: dict[str, threading.Lock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _lock_for(path: str) -> threading.Lock:
    with _PATH_LOCKS_GUARD:
        if path not in _PATH_LOCKS:
            _PATH_LOCKS[path] = threading.Lock()
        return _PATH_LOCKS[path]


class PendingQueue:
    """Append-only JSON-file queue of BugReport documents."""

    def __init__(self, path: str = PENDING_QUEUE_PATH, key: str = PENDING_QUEUE_KEY) -> None:
        self.path = os.path.abspath(path)
        self.key = key
        self._lock = _lock_for(self.path)

    def _read_store(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            raise PersistenceError(f"Cannot read pending queue {self.path}: {e}") from e

        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Pending queue {self.path} is corrupt: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get(self.key, []), list):
            raise PersistenceError(f"Pending queue {self.path} has an unexpected shape")
        return data

    def _write_store(self, data: dict) -> None:
        directory = os.path.dirname(self.path)
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".pending-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write pending queue {self.path}: {e}") from e

    def load(self) -> List[dict]:
        """Return the queued report documents, oldest first."""
        with self._lock:
            return list(self._read_store().get(self.key, []))

    def enqueue(self, report: BugReport) -> int:
        """
        Append a report to the queue.

        Returns
        -------
        int
            Queue length after the append.

        Raises
        ------
        PersistenceError
            The file could not be read, parsed or written.
        """
        with self._lock:
            data = self._read_store()
            pending = data.get(self.key, [])
            pending.append(report.to_document())
            data[self.key] = pending
            self._write_store(data)

        logger.info("Bug report %s saved locally for later sync (%d pending)", report.id, len(pending))
        return len(pending)

    def __len__(self) -> int:
        return len(self.load())
