"""Flat key-value stores backing the coach profile (JSON + fcntl.flock + atomic write)."""

import fcntl
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.:-]+$")


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryStore:
    """In-process store; values are deep-copied through JSON like the file store."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, default=str)


class JsonFileStore:
    """One JSON document per key inside ``directory``.

    Args:
        directory: Folder holding the documents. Created on first use.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid store key: {key!r}")
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory / f"{key.replace(':', '__')}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            try:
                return json.load(f)
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            json.dump(value, tmp, default=str)
        os.replace(tmp.name, path)
