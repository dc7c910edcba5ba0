"""
Append-only local ledger of design requests.

The ledger is a single JSON array on disk and is the durable source of truth
for every accepted submission. Mutations are read-modify-write under a lock
and finish with an atomic file replacement, so a crash mid-write leaves the
previous version intact and concurrent appends never lose updates.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List

from pydantic import ValidationError

from .errors import PersistenceError
from .models import DesignRequest
from .utils import ensure_directory

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_PATH = Path("data/requests.json")

# One lock per ledger file, shared by every RequestLedger opened on it.
_PATH_LOCKS: Dict[Path, Lock] = {}
_PATH_LOCKS_GUARD = Lock()


def _lock_for(path: Path) -> Lock:
    key = path.resolve()
    with _PATH_LOCKS_GUARD:
        if key not in _PATH_LOCKS:
            _PATH_LOCKS[key] = Lock()
        return _PATH_LOCKS[key]


class RequestLedger:
    """
    JSON-file ledger of submitted design requests.

    Thread Safety:
        All reads and writes hold a lock shared by every instance opened on
        the same file, so appends from concurrent request threads are
        serialized.
    """

    def __init__(self, path: Path = DEFAULT_LEDGER_PATH) -> None:
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    def append(self, record: DesignRequest) -> None:
        """
        Durably add a record to the end of the ledger.

        Raises:
            PersistenceError: If the ledger cannot be read or written, or if
                a record with the same id is already stored
        """
        with self._lock:
            entries = self._read_entries()
            if any(entry.get("id") == record.id for entry in entries):
                raise PersistenceError(f"Request {record.id} already exists in the ledger")
            entries.append(record.to_record())
            self._write_entries(entries)
        logger.info(f"Ledger append: {record.id} ({len(entries)} records)")

    def list_all(self) -> List[DesignRequest]:
        """Return all records in insertion order."""
        with self._lock:
            entries = self._read_entries()
        try:
            return [DesignRequest.model_validate(entry) for entry in entries]
        except ValidationError as exc:
            raise PersistenceError(f"Ledger {self.path} contains an invalid record: {exc}") from exc

    def attach_pdf_url(self, request_id: str, pdf_url: str) -> None:
        """
        Record the published document reference on an existing entry.

        Raises:
            PersistenceError: If the entry is missing or the write fails
        """
        with self._lock:
            entries = self._read_entries()
            for entry in entries:
                if entry.get("id") == request_id:
                    entry["pdfUrl"] = pdf_url
                    break
            else:
                raise PersistenceError(f"Request {request_id} not found in the ledger")
            self._write_entries(entries)

    def _ensure_store(self) -> None:
        """Create the ledger file (empty) on first access."""
        if self.path.exists():
            return
        ensure_directory(self.path.parent)
        self._write_entries([])
        logger.info(f"Initialized empty ledger at {self.path}")

    def _read_entries(self) -> List[Dict[str, Any]]:
        try:
            self._ensure_store()
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Failed to read ledger {self.path}: {exc}") from exc
        if not isinstance(data, list):
            raise PersistenceError(f"Ledger {self.path} is not a JSON array")
        return data

    def _write_entries(self, entries: List[Dict[str, Any]]) -> None:
        """Write the whole collection to a temp file and atomically swap it in."""
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(entries, handle, indent=2, ensure_ascii=False)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Failed to write ledger {self.path}: {exc}") from exc
