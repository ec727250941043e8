import json
import logging
import os
import tempfile
import threading
from typing import Any, Dict, List, Optional

from .interfaces import AbstractAssignmentStore

logger = logging.getLogger("cohortkit.stores")


class InMemoryAssignmentStore(AbstractAssignmentStore):
    def __init__(self) -> None:
        self.docs: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self.docs.get(key, None)

    def set(self, key: str, value: Any) -> None:
        if value is None:
            raise ValueError("Cannot store None, use delete() instead")
        self.docs[key] = value

    def delete(self, key: str) -> None:
        self.docs.pop(key, None)

    def keys(self, prefix: str = "") -> List[str]:
        return [k for k in self.docs if k.startswith(prefix)]

    def clear(self) -> None:
        self.docs.clear()


class JsonFileAssignmentStore(AbstractAssignmentStore):
    """Assignment store persisted to a JSON file.

    The file holds one object per namespace, so several stores (profiles)
    can share a file without clearing each other. Writes replace the file
    atomically.
    """

    def __init__(self, path: str, namespace: str = "cohortkit") -> None:
        self.path = os.path.abspath(path)
        self.namespace = namespace
        self._lock = threading.Lock()
        self._docs: Dict[str, Any] = self._read_all().get(namespace, {})

    def _read_all(self) -> Dict[str, Dict[str, Any]]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Assignment file {self.path} does not contain a JSON object")
        return data

    def _write(self, docs: Dict[str, Any]) -> None:
        everything = self._read_all()
        if docs:
            everything[self.namespace] = docs
        else:
            everything.pop(self.namespace, None)

        directory = os.path.dirname(self.path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".cohortkit-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(everything, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
        logger.debug("Wrote %d assignment keys to %s", len(docs), self.path)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._docs.get(key, None)

    # Memory only changes once the file write succeeded
    def set(self, key: str, value: Any) -> None:
        if value is None:
            raise ValueError("Cannot store None, use delete() instead")
        with self._lock:
            docs = dict(self._docs)
            docs[key] = value
            self._write(docs)
            self._docs = docs

    def delete(self, key: str) -> None:
        with self._lock:
            if key not in self._docs:
                return
            docs = dict(self._docs)
            del docs[key]
            self._write(docs)
            self._docs = docs

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return [k for k in self._docs if k.startswith(prefix)]

    def clear(self) -> None:
        with self._lock:
            self._write({})
            self._docs = {}

    def reload(self) -> None:
        """Re-read this namespace from disk to pick up writes made by another instance."""
        with self._lock:
            self._docs = self._read_all().get(self.namespace, {})
