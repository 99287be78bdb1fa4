# Overview: Key-value storage for the persisted login.

"""
Session persistence boundary.

The identity store keeps exactly one entry here: the logged-in user,
serialized as JSON under a fixed key. Any object with get/set/remove works;
two implementations ship:

- JsonFileSessionStorage: one JSON document on disk, survives restarts
- MemorySessionStorage: dict-backed, for tests
"""

from __future__ import annotations

import json
import os
import tempfile
from typing import Protocol


class SessionStorage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemorySessionStorage:
    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileSessionStorage:
    """
    Stores all keys in a single JSON object file.

    Writes go through a temp file + os.replace so a crash mid-write never
    leaves a truncated document behind.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = os.fspath(path)

    def _read_all(self, *, strict: bool = True) -> dict[str, str]:
        """
        Load the whole document. An unreadable file raises ValueError, or
        reads as empty with strict=False so the next write replaces it.
        """
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except ValueError:
            if strict:
                raise
            return {}
        if not isinstance(data, dict):
            if strict:
                raise ValueError(f"session storage at {self.path} is not a JSON object")
            return {}
        return data

    def _write_all(self, data: dict[str, str]) -> None:
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".session-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all(strict=False)
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        try:
            data = self._read_all()
        except ValueError:
            # Unreadable document; replace it with an empty one
            self._write_all({})
            return
        if key in data:
            del data[key]
            self._write_all(data)
