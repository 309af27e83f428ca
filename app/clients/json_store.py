"""Flat JSON document used as the relay's only local storage."""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

T = TypeVar("T")

_COLLECTIONS = ("registrations", "logs", "projects", "teams")


class JsonStore:
    """Read-before-every-operation, write-after-every-mutation document store.

    The document has one list per collection plus an optional ``credential``
    object. Missing keys are defaulted on load. A lock keeps a single
    read-modify-write from tearing the file; separate operations still race
    and the last writer wins.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._ensure_document()

    @property
    def path(self) -> Path:
        return self._db_path

    def _ensure_document(self) -> None:
        with self._lock:
            self._write(self._read())

    def _read(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self._db_path.exists():
            raw = self._db_path.read_text(encoding="utf-8")
            if raw.strip():
                loaded = json.loads(raw)
                if isinstance(loaded, dict):
                    data = loaded
        for name in _COLLECTIONS:
            if not isinstance(data.get(name), list):
                data[name] = []
        data.setdefault("credential", None)
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._db_path.parent, prefix=f".{self._db_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, default=str)
            os.replace(tmp_name, self._db_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def read(self) -> Dict[str, Any]:
        """Return a fresh copy of the whole document."""
        with self._lock:
            return self._read()

    def update(self, mutator: Callable[[Dict[str, Any]], T]) -> T:
        """Apply ``mutator`` to the current document and persist the result."""
        with self._lock:
            data = self._read()
            result = mutator(data)
            self._write(data)
            return result

    def list_items(self, collection: str) -> List[Dict[str, Any]]:
        if collection not in _COLLECTIONS:
            raise ValueError(f"Unknown collection {collection!r}")
        return list(self.read()[collection])

    def append_item(self, collection: str, item: Dict[str, Any]) -> None:
        if collection not in _COLLECTIONS:
            raise ValueError(f"Unknown collection {collection!r}")
        self.update(lambda data: data[collection].append(item))

    def replace_items(self, collection: str, items: List[Dict[str, Any]]) -> None:
        if collection not in _COLLECTIONS:
            raise ValueError(f"Unknown collection {collection!r}")

        def _replace(data: Dict[str, Any]) -> None:
            data[collection] = list(items)

        self.update(_replace)

    def get_credential(self) -> Optional[Dict[str, Any]]:
        return self.read().get("credential")

    def put_credential(self, record: Optional[Dict[str, Any]]) -> None:
        def _put(data: Dict[str, Any]) -> None:
            data["credential"] = record

        self.update(_put)


__all__ = ["JsonStore"]
