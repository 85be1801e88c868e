"""
State store backends and the call-scoped transaction context.

The store owns persisted bytes per key. Operations never talk to a store
directly: each call gets a fresh TransactionContext that buffers writes and
hands them to the store in a single put_many() on commit. A call that raises
is simply never committed.
"""

from __future__ import annotations

import fcntl
import json
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping

from .errors import StoreError
from .util import new_tx_id

logger = logging.getLogger(__name__)


class StateStore(ABC):
    """Key-value persistence consumed by the ledger."""

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Return the stored value, or None if the key is absent."""
        ...

    @abstractmethod
    def put(self, key: str, value: bytes) -> None:
        ...

    def put_many(self, items: Mapping[str, bytes]) -> None:
        """
        Write several keys. Backends that can do this atomically override it.
        """
        for key, value in items.items():
            self.put(key, value)

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with `prefix`, sorted."""
        ...

    @contextmanager
    def lock(self) -> Iterator[None]:
        """
        Hold exclusive access for one read-validate-commit window.

        The in-process default does nothing; callers in one process are
        expected to serialize themselves.
        """
        yield


class MemoryStore(StateStore):
    """In-process store. put_many is atomic because it is a single dict update."""

    def __init__(self, initial: Mapping[str, bytes] | None = None):
        self._data: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def put(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def put_many(self, items: Mapping[str, bytes]) -> None:
        self._data.update({k: bytes(v) for k, v in items.items()})

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class FileStore(StateStore):
    """
    Store backed by a single JSON document:

        <state_dir>/state.json    {"assets_A1": "{...}", ...}

    Every write rewrites the document via temp file + rename, so a
    put_many() either lands completely or not at all. Concurrent processes
    sharing a state directory serialize through lock(), an exclusive flock
    on the state.lock sidecar; writers that bypass lock() can lose updates.
    """

    FILENAME = "state.json"
    LOCK_FILENAME = "state.lock"

    def __init__(self, state_dir: Path):
        self.state_dir = state_dir
        self.state_path = state_dir / self.FILENAME

    def _load(self) -> dict[str, str]:
        if not self.state_path.exists():
            return {}
        try:
            data = json.loads(self.state_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise StoreError(f"Cannot read {self.state_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt state file {self.state_path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Corrupt state file {self.state_path}: expected an object")
        return data

    def _save(self, data: dict[str, str]) -> None:
        temp_path = self.state_path.with_suffix(".tmp")
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
            temp_path.replace(self.state_path)
        except OSError as e:
            raise StoreError(f"Cannot write {self.state_path}: {e}") from e

    def get(self, key: str) -> bytes | None:
        value = self._load().get(key)
        return value.encode("utf-8") if value is not None else None

    def put(self, key: str, value: bytes) -> None:
        self.put_many({key: value})

    def put_many(self, items: Mapping[str, bytes]) -> None:
        if not items:
            return
        data = self._load()
        for key, value in items.items():
            try:
                data[key] = bytes(value).decode("utf-8")
            except UnicodeDecodeError as e:
                raise StoreError(f"Value for {key!r} is not UTF-8 text") from e
        self._save(data)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._load() if k.startswith(prefix))

    @contextmanager
    def lock(self) -> Iterator[None]:
        lock_path = self.state_dir / self.LOCK_FILENAME
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            lock_handle = lock_path.open("a+", encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Cannot open lock file {lock_path}: {e}") from e
        with lock_handle:
            fcntl.flock(lock_handle.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_handle.fileno(), fcntl.LOCK_UN)


class TransactionContext:
    """
    Call-scoped view of the store.

    Reads see this context's own pending writes first. Nothing reaches the
    store until commit(); a context is committed at most once.
    """

    def __init__(self, store: StateStore, *, operation: str = "", tx_id: str | None = None):
        self.store = store
        self.operation = operation
        self.tx_id = tx_id or new_tx_id()
        self._writes: dict[str, bytes] = {}
        self._committed = False

    def get_state(self, key: str) -> bytes | None:
        if key in self._writes:
            return self._writes[key]
        return self.store.get(key)

    def put_state(self, key: str, value: bytes) -> None:
        if self._committed:
            raise StoreError(f"Transaction {self.tx_id} already committed")
        self._writes[key] = value

    def keys(self, prefix: str = "") -> list[str]:
        pending = {k for k in self._writes if k.startswith(prefix)}
        return sorted(pending.union(self.store.keys(prefix)))

    def commit(self) -> list[str]:
        """Flush buffered writes in one put_many(). Returns the keys written."""
        if self._committed:
            raise StoreError(f"Transaction {self.tx_id} already committed")
        keys = list(self._writes)
        if keys:
            self.store.put_many(self._writes)
            logger.debug("tx %s committed %d key(s): %s", self.tx_id, len(keys), keys)
        self._committed = True
        return keys


def open_store(state_dir: Path | None) -> StateStore:
    """FileStore for a directory, MemoryStore when no directory is given."""
    if state_dir is None:
        return MemoryStore()
    return FileStore(state_dir)

