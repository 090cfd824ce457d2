from __future__ import annotations

import json
import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


class SimpleFileLock:
    def __init__(self, path: Path, timeout: float = 5.0):
        self.lock_path = str(path) + ".lock"
        self.timeout = timeout
        self._fd: int | None = None

    def acquire(self) -> None:
        start = time.time()
        while True:
            try:
                self._fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_RDWR)
                return
            except FileExistsError:
                if time.time() - start > self.timeout:
                    raise TimeoutError(f"Timeout waiting for lock {self.lock_path}")
                time.sleep(0.05)

    def release(self) -> None:
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None
        try:
            os.unlink(self.lock_path)
        except FileNotFoundError:
            pass

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()


class KeyValueStore:
    """
    Flat string-to-string store persisted as one JSON object, the same shape
    as browser localStorage. Values are opaque text; callers encode JSON.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with SimpleFileLock(self.path):
            yield

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Discarding unreadable store %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Discarding store %s: expected an object, got %s", self.path, type(data).__name__)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        with self._locked():
            return self._read().get(key)

    def contains(self, key: str) -> bool:
        return self.get(key) is not None

    def set(self, key: str, value: str) -> None:
        self.update({key: value})

    def update(self, values: dict[str, str]) -> None:
        with self._locked():
            data = self._read()
            data.update(values)
            self._write(data)

    def remove(self, *keys: str) -> None:
        with self._locked():
            data = self._read()
            if not any(k in data for k in keys):
                return
            for key in keys:
                data.pop(key, None)
            self._write(data)

    def snapshot(self) -> dict[str, str]:
        with self._locked():
            return dict(self._read())


class MemoryStore(KeyValueStore):
    """In-process store with the same interface; nothing touches disk."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    @contextmanager
    def _locked(self) -> Iterator[None]:
        yield

    def _read(self) -> dict[str, str]:
        return self._data

    def _write(self, data: dict[str, str]) -> None:
        self._data = dict(data)
