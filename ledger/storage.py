"""
Commodity Asset Ledger - Storage Backend

This module provides JSON-based persistence of the ledger state with
file locking, atomic replacement, integrity checksums and backups.
"""

import fcntl
import hashlib
import json
import logging
import os
import shutil
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Union

from .schema import LedgerState


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
    """Exclusive lock file guarding a storage file."""

    def __init__(self, file_path: Union[str, Path], timeout: float = 30.0):
        self.file_path = Path(file_path)
        self.lock_file_path = self.file_path.with_suffix(self.file_path.suffix + '.lock')
        self.timeout = timeout
        self.lock_fd = None
        self._thread_lock = RLock()

    def is_locked(self) -> bool:
        return self.lock_fd is not None

    def acquire(self) -> bool:
        """Acquire file lock with timeout."""
        with self._thread_lock:
            if self.lock_fd is not None:
                return True

            start_time = time.time()

            while time.time() - start_time < self.timeout:
                try:
                    self.lock_fd = os.open(
                        str(self.lock_file_path),
                        os.O_CREAT | os.O_EXCL | os.O_RDWR
                    )
                except FileExistsError:
                    # Held by another process or instance
                    time.sleep(0.05)
                    continue
                except OSError as e:
                    raise StorageError(f"Failed to acquire lock: {e}")

                try:
                    fcntl.flock(self.lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                    return True
                except BlockingIOError:
                    os.close(self.lock_fd)
                    os.unlink(self.lock_file_path)
                    self.lock_fd = None

            raise LockTimeoutError(f"Failed to acquire lock within {self.timeout} seconds")

    def release(self) -> None:
        """Release file lock."""
        with self._thread_lock:
            if self.lock_fd is None:
                return

            try:
                fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
                os.close(self.lock_fd)
                os.unlink(self.lock_file_path)
            except OSError as e:
                # Don't mask the exception that ended the locked block
                logger.warning(f"Failed to release lock {self.lock_file_path}: {e}")
            finally:
                self.lock_fd = None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


class JSONStorage:
    """JSON document storage with atomic writes and rolling backups."""

    def __init__(
        self,
        file_path: Union[str, Path],
        backup_count: int = 5,
        lock_timeout: float = 30.0
    ):
        self.file_path = Path(file_path)
        self.backup_count = backup_count
        self.lock_timeout = lock_timeout

        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def backup_dir(self) -> Path:
        return self.file_path.parent / 'backups'

    def _calculate_checksum(self, data: bytes) -> str:
        """Calculate SHA-256 checksum of data."""
        return hashlib.sha256(data).hexdigest()

    def _read_file(self) -> bytes:
        with open(self.file_path, 'rb') as f:
            return f.read()

    def _write_file(self, data: Dict[str, Any]) -> bytes:
        """Write data to file atomically and return the bytes written."""
        json_data = json.dumps(data, indent=2, default=str).encode('utf-8')
        temp_file = self.file_path.with_suffix(self.file_path.suffix + '.tmp')

        try:
            with open(temp_file, 'wb') as f:
                f.write(json_data)
                f.flush()
                os.fsync(f.fileno())

            os.replace(temp_file, self.file_path)

        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise StorageError(f"Failed to write file: {e}")

        return json_data

    def _create_backup(self) -> None:
        """Create timestamped backup of current file."""
        if not self.file_path.exists():
            return

        timestamp = datetime.utcnow().strftime('%Y%m%d_%H%M%S_%f')
        backup_path = self.backup_dir / f"{self.file_path.stem}_{timestamp}{self.file_path.suffix}"
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
    def _lock_context(self):
        """Context manager for file locking."""
        with FileLock(self.file_path, timeout=self.lock_timeout):
            yield

    def _load(self) -> Dict[str, Any]:
        """Deserialize the current file. Caller holds the lock."""
        if not self.file_path.exists():
            return {}

        data = self._read_file()
        if not data:
            return {}

        try:
            return json.loads(data.decode('utf-8'))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise IntegrityError(f"Invalid JSON data in {self.file_path}: {e}")

    def _store(self, data: Dict[str, Any], create_backup: bool) -> str:
        if create_backup:
            self._create_backup()

        written = self._write_file(data)
        return self._calculate_checksum(written)

    def read(self) -> Dict[str, Any]:
        """Read and deserialize data from storage."""
        if not self.file_path.exists():
            return {}

        with self._lock_context():
            return self._load()

    def write(self, data: Dict[str, Any], create_backup: bool = False) -> str:
        """Write data to storage atomically and return its checksum."""
        with self._lock_context():
            return self._store(data, create_backup)

    def update(
        self,
        updater_func: Callable[[Dict[str, Any]], Dict[str, Any]],
        create_backup: bool = False
    ) -> str:
        """
        Read, transform and write data under a single file lock.

        Nothing is written if ``updater_func`` raises.
        """
        with self._lock_context():
            updated_data = updater_func(self._load())
            return self._store(updated_data, create_backup)

    def exists(self) -> bool:
        return self.file_path.exists()

    def size(self) -> int:
        if not self.file_path.exists():
            return 0
        return self.file_path.stat().st_size

    def verify(self, expected_checksum: Optional[str] = None) -> bool:
        """Verify file integrity."""
        if not self.file_path.exists():
            return False

        data = self._read_file()
        if expected_checksum:
            return self._calculate_checksum(data) == expected_checksum

        try:
            json.loads(data.decode('utf-8'))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return False
        return True

    def list_backups(self) -> List[Path]:
        """List backup files, newest first."""
        if not self.backup_dir.exists():
            return []

        pattern = f"{self.file_path.stem}_*{self.file_path.suffix}"
        return sorted(self.backup_dir.glob(pattern), key=lambda p: p.name, reverse=True)

    def restore_backup(self, backup_timestamp: str) -> bool:
        """Restore from a specific backup."""
        backup_path = self.backup_dir / f"{self.file_path.stem}_{backup_timestamp}{self.file_path.suffix}"

        if not backup_path.exists():
            return False

        with self._lock_context():
            self._create_backup()
            shutil.copy2(backup_path, self.file_path)

        return True


class LedgerStorage:
    """High-level ledger storage interface."""

    def __init__(
        self,
        storage_dir: Union[str, Path] = "ledger_data",
        backup_count: int = 5,
        lock_timeout: float = 30.0
    ):
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

        self.json_storage = JSONStorage(
            self.storage_dir / "ledger.json",
            backup_count=backup_count,
            lock_timeout=lock_timeout
        )

    def has_state(self) -> bool:
        return self.json_storage.exists() and self.json_storage.size() > 0

    def load_state(self) -> Optional[LedgerState]:
        """Load ledger state, or None if nothing has been persisted yet."""
        return self._parse(self.json_storage.read())

    def _parse(self, data: Dict[str, Any]) -> Optional[LedgerState]:
        if not data:
            return None

        try:
            return LedgerState.model_validate(data)
        except ValueError as e:
            raise IntegrityError(f"Stored ledger state is invalid: {e}")

    def save_state(self, state: LedgerState, create_backup: bool = False) -> str:
        """Persist ledger state and return the file checksum."""
        return self.json_storage.write(state.model_dump(mode="json"), create_backup=create_backup)

    def update_state(
        self,
        updater_func: Callable[[Optional[LedgerState]], LedgerState]
    ) -> str:
        """
        Apply ``updater_func`` to the persisted state atomically.

        The updater receives the state as stored at the moment the file lock
        was taken (None for an empty ledger) and returns the state to write.
        Other registries sharing the directory are locked out until the
        write completes.
        """
        def state_updater(data: Dict[str, Any]) -> Dict[str, Any]:
            return updater_func(self._parse(data)).model_dump(mode="json")

        return self.json_storage.update(state_updater)

    def backup(self) -> bool:
        """Create manual backup of the current ledger file."""
        if not self.json_storage.exists():
            return False

        with self.json_storage._lock_context():
            self.json_storage._create_backup()
        return True

    def list_backups(self) -> List[str]:
        """List available backup timestamps, newest first."""
        prefix = f"{self.json_storage.file_path.stem}_"
        return [backup.stem[len(prefix):] for backup in self.json_storage.list_backups()]

    def restore_backup(self, timestamp: str) -> bool:
        return self.json_storage.restore_backup(timestamp)

    def get_storage_info(self) -> Dict[str, Any]:
        return {
            'file_path': str(self.json_storage.file_path),
            'size_bytes': self.json_storage.size(),
            'exists': self.json_storage.exists(),
            'backup_count': len(self.json_storage.list_backups())
        }
