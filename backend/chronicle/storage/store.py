# backend/chronicle/storage/store.py
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ..config import Settings
from ..errors import StorageIOError, StoreBusyError
from ..utils.logging import storage_logger
from .generations import Generation, GenerationManager


class Store:
    """The archive store: the live generation behind a store-wide gate.

    Every normal operation runs inside :meth:`access`, which serializes it
    against all others. While a restore holds the store through
    :meth:`exclusive`, ``access`` fails fast with :class:`StoreBusyError`
    instead of queueing behind a potentially slow import.
    """

    def __init__(self, storage_path: Path, generations_path: Optional[Path] = None,
                 retry_after: int = 5):
        self.retry_after = retry_after
        self._manager = GenerationManager(storage_path, generations_path)
        self._lock = threading.RLock()
        self._exclusive = False
        self._generation: Optional[Generation] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Store":
        settings.create_storage_dirs()
        return cls(settings.STORAGE_PATH, settings.GENERATIONS_PATH, settings.BUSY_RETRY_AFTER)

    @property
    def storage_path(self) -> Path:
        return self._manager.storage_path

    @property
    def is_open(self) -> bool:
        return self._generation is not None

    @property
    def busy(self) -> bool:
        return self._exclusive

    def open(self) -> "Store":
        with self._lock:
            if self._generation is None:
                self._generation = self._manager.recover()
        return self

    def close(self) -> None:
        with self._lock:
            if self._generation is not None:
                self._generation.close()
                self._generation = None
                storage_logger.info("Store closed")

    def __enter__(self) -> "Store":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextmanager
    def access(self) -> Iterator[Generation]:
        """Run one operation against the live generation"""
        if self._exclusive:
            raise StoreBusyError(self.retry_after)
        with self._lock:
            if self._exclusive:
                raise StoreBusyError(self.retry_after)
            if self._generation is None:
                raise StorageIOError("Store is not open")
            yield self._generation

    @contextmanager
    def exclusive(self) -> Iterator["Store"]:
        """Reject normal operations until the block exits"""
        with self._lock:
            if self._exclusive:
                raise StoreBusyError(self.retry_after)
            if self._generation is None:
                raise StorageIOError("Store is not open")
            self._exclusive = True
        try:
            yield self
        finally:
            with self._lock:
                self._exclusive = False

    def stage(self) -> Generation:
        return self._manager.stage()

    def discard(self, staged: Generation) -> None:
        self._manager.discard(staged)

    def live_sequence_floors(self) -> dict[str, int]:
        with self._lock:
            with self._generation.metadata() as metadata:
                return metadata.sequence_floors()

    def swap(self, staged: Generation) -> Generation:
        """Make a fully written staged generation live and retire the old one"""
        if not self._exclusive:
            raise RuntimeError("swap() requires exclusive access")
        with self._lock:
            previous = self._generation
            self._generation = self._manager.promote(staged, previous)
        self._manager.retire(previous)
        return self._generation
