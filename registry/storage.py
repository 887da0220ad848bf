"""
Capped-Mint Collectible Registry - Storage Backend

This module provides the key-value substrate the contract state lives in:
an in-memory store, a JSON file store with cross-process locking, atomic
writes and backups, and the transaction overlay that makes each contract
invocation all-or-nothing.
"""

import fcntl
import gzip
import hashlib
import json
import logging
import os
import shutil
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Iterator, List, Optional, Union

from .schema import DataKey


logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base storage exception."""
    pass


class LockTimeoutError(StorageError):
    """Lock acquisition timeout exception."""
    pass


class IntegrityError(StorageError):
    """File integrity check failure exception."""
    pass


class FileLock:
    """Exclusive ``fcntl.flock`` on a persistent ``.lock`` file beside the data file."""

    def __init__(self, file_path: Union[str, Path], timeout: float = 30.0):
        self.file_path = Path(file_path)
        self.lock_file_path = self.file_path.with_suffix(self.file_path.suffix + '.lock')
        self.timeout = timeout
        self.lock_fd = None
        self._thread_lock = RLock()
        self._depth = 0

    def acquire(self) -> bool:
        """Acquire file lock with timeout."""
        with self._thread_lock:
            if self.lock_fd is not None:
                self._depth += 1
                return True  # Re-entered by this instance

            try:
                fd = os.open(str(self.lock_file_path), os.O_CREAT | os.O_RDWR)
            except OSError as e:
                raise StorageError(f"Failed to open lock file: {e}")

            start_time = time.time()

            # The kernel drops the flock when its holder exits, so a lock
            # file left behind by a dead process never blocks acquisition
            while True:
                try:
                    fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                    self.lock_fd = fd
                    self._depth = 1
                    return True
                except BlockingIOError:
                    if time.time() - start_time >= self.timeout:
                        os.close(fd)
                        raise LockTimeoutError(f"Failed to acquire lock within {self.timeout} seconds")
                    time.sleep(0.05)
                except OSError as e:
                    os.close(fd)
                    raise StorageError(f"Failed to acquire lock: {e}")

    def release(self) -> None:
        """Release file lock. The lock file itself stays in place."""
        with self._thread_lock:
            if self.lock_fd is None:
                return

            self._depth -= 1
            if self._depth > 0:
                return

            try:
                fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
                os.close(self.lock_fd)
            except OSError as e:
                logger.warning(f"Failed to release lock {self.lock_file_path}: {e}")
            finally:
                self.lock_fd = None

    def is_locked(self) -> bool:
        return self.lock_fd is not None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


class KeyValueStore(ABC):
    """
    Durable key-value substrate scoped to one contract instance.

    Keys are encoded ``DataKey`` strings and values are JSON scalars.
    Callers hold ``locked()`` across a whole load/apply cycle.
    """

    @abstractmethod
    def load(self) -> Dict[str, Any]:
        """Return a copy of every stored entry."""
        pass

    @abstractmethod
    def apply(self, writes: Dict[str, Any]) -> None:
        """Durably apply a batch of writes in one step."""
        pass

    @abstractmethod
    @contextmanager
    def locked(self) -> Iterator[None]:
        """Serialize read-modify-write cycles against this store."""
        pass

    def get(self, key: Union[DataKey, str]) -> Optional[Any]:
        """Read one committed value, ``None`` if the key was never written."""
        return self.load().get(str(key))


class MemoryStore(KeyValueStore):
    """Process-local store backed by a dict."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})
        self._lock = RLock()

    def load(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._data)

    def apply(self, writes: Dict[str, Any]) -> None:
        with self._lock:
            self._data.update(writes)

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def __len__(self) -> int:
        return len(self._data)


class JSONFileStore(KeyValueStore):
    """JSON file store with atomic writes, compression and backups."""

    def __init__(
        self,
        file_path: Union[str, Path],
        compressed: bool = False,
        backup_count: int = 5,
        lock_timeout: float = 30.0
    ):
        self.file_path = Path(file_path)
        self.compressed = compressed
        self.backup_count = backup_count
        self.lock_timeout = lock_timeout
        self._lock = FileLock(self.file_path, timeout=lock_timeout)
        self._thread_lock = RLock()

        self.file_path.parent.mkdir(parents=True, exist_ok=True)

        with self.locked():
            if not self.file_path.exists():
                self._write_file({})

    def _calculate_checksum(self, data: bytes) -> str:
        """Calculate SHA-256 checksum of data."""
        return hashlib.sha256(data).hexdigest()

    def _read_file(self) -> bytes:
        """Read raw file data."""
        if self.compressed:
            with gzip.open(self.file_path, 'rb') as f:
                return f.read()
        with open(self.file_path, 'rb') as f:
            return f.read()

    def _write_file(self, data: Dict[str, Any]) -> None:
        """Write data to file atomically."""
        json_data = json.dumps(data, indent=2, sort_keys=True).encode('utf-8')

        temp_file = self.file_path.with_suffix(self.file_path.suffix + '.tmp')

        try:
            if self.compressed:
                with gzip.open(temp_file, 'wb') as f:
                    f.write(json_data)
            else:
                with open(temp_file, 'wb') as f:
                    f.write(json_data)

            os.replace(temp_file, self.file_path)

        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise StorageError(f"Failed to write file: {e}")

    def _create_backup(self) -> None:
        """Create timestamped backup of current file."""
        if not self.file_path.exists() or self.backup_count <= 0:
            return

        timestamp = datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S_%f')
        backup_name = f"{self.file_path.stem}_{timestamp}{self.file_path.suffix}"
        backup_path = self.file_path.parent / 'backups' / backup_name

        backup_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(self.file_path, backup_path)

        self._cleanup_old_backups()

    def _cleanup_old_backups(self) -> None:
        """Remove old backup files beyond backup_count."""
        for backup_file in self.list_backups()[self.backup_count:]:
            try:
                backup_file.unlink()
            except OSError as e:
                logger.warning(f"Failed to remove old backup {backup_file}: {e}")

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._thread_lock:
            with self._lock:
                yield

    def load(self) -> Dict[str, Any]:
        """Read and deserialize every entry."""
        try:
            data = self._read_file()
        except OSError as e:
            raise StorageError(f"Failed to read storage: {e}")

        if not data:
            return {}

        try:
            decoded = json.loads(data.decode('utf-8'))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise IntegrityError(f"Invalid JSON data: {e}")

        if not isinstance(decoded, dict):
            raise IntegrityError("Storage root must be a JSON object")
        return decoded

    def apply(self, writes: Dict[str, Any]) -> None:
        """Merge writes into the file, keeping a backup of the prior version."""
        if not writes:
            return
        with self.locked():
            current = self.load()
            current.update(writes)
            self._create_backup()
            self._write_file(current)

    def checksum(self) -> str:
        return self._calculate_checksum(self._read_file())

    def size(self) -> int:
        """Get storage file size in bytes."""
        if not self.file_path.exists():
            return 0
        return self.file_path.stat().st_size

    def list_backups(self) -> List[Path]:
        """List backup files, newest first."""
        backup_dir = self.file_path.parent / 'backups'
        if not backup_dir.exists():
            return []

        pattern = f"{self.file_path.stem}_*{self.file_path.suffix}"
        backup_files = list(backup_dir.glob(pattern))
        backup_files.sort(key=lambda p: p.name, reverse=True)
        return backup_files

    def restore_backup(self, backup_path: Union[str, Path]) -> bool:
        """Replace the current file with a backup."""
        backup_path = Path(backup_path)
        if not backup_path.exists():
            return False

        with self.locked():
            self._create_backup()
            shutil.copy2(backup_path, self.file_path)
        logger.info(f"Restored storage from {backup_path.name}")
        return True

    def get_storage_info(self) -> Dict[str, Any]:
        """Get storage information."""
        return {
            'file_path': str(self.file_path),
            'compressed': self.compressed,
            'size_bytes': self.size(),
            'exists': self.file_path.exists(),
            'backup_count': len(self.list_backups()),
        }


class StorageTransaction:
    """
    Pending writes layered over a snapshot of a store.

    Reads see this transaction's own writes first. Nothing reaches the
    underlying store until ``commit()``.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._base = store.load()
        self._writes: Dict[str, Any] = {}
        self._finished = False

    def get(self, key: Union[DataKey, str]) -> Optional[Any]:
        raw = str(key)
        if raw in self._writes:
            return self._writes[raw]
        return self._base.get(raw)

    def has(self, key: Union[DataKey, str]) -> bool:
        raw = str(key)
        return raw in self._writes or raw in self._base

    def set(self, key: Union[DataKey, str], value: Any) -> None:
        if self._finished:
            raise StorageError("Transaction already finished")
        if value is None:
            raise StorageError(f"Cannot store None under {key}")
        self._writes[str(key)] = value

    def snapshot(self) -> Dict[str, Any]:
        """Committed entries merged with this transaction's pending writes."""
        merged = dict(self._base)
        merged.update(self._writes)
        return merged

    @property
    def pending_writes(self) -> Dict[str, Any]:
        return dict(self._writes)

    def commit(self) -> int:
        """Apply all pending writes and return how many were written."""
        if self._finished:
            raise StorageError("Transaction already finished")
        self._finished = True
        self.store.apply(self._writes)
        return len(self._writes)

    def discard(self) -> None:
        self._finished = True
        self._writes.clear()
