# backend/chronicle/storage/generations.py
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from ..database import create_generation_engine, create_session_factory
from ..errors import StorageIOError
from ..utils.files import atomic_write_text, fsync_directory, remove_tree
from ..utils.logging import storage_logger
from .blobs import BlobStore
from .metadata import MetadataStore

POINTER_FILE = "CURRENT"
GENERATION_PREFIX = "gen-"
STAGING_PREFIX = "staging-"
_GENERATION_NAME = re.compile(r"^gen-(\d{6,})$")


def generation_name(number: int) -> str:
    return f"{GENERATION_PREFIX}{number:06d}"


def generation_number(name: str) -> int:
    match = _GENERATION_NAME.match(name)
    if not match:
        raise StorageIOError(f"Invalid generation name: {name!r}")
    return int(match.group(1))


class Generation:
    """One complete metadata database plus blob area"""

    def __init__(self, name: str, path: Path):
        self.name = name
        self.path = Path(path)
        self.path.mkdir(parents=True, exist_ok=True)
        self.blobs = BlobStore(self.path / "blobs")
        self.engine = create_generation_engine(self.path / "metadata.db")
        self._session_factory = create_session_factory(self.engine)

    @contextmanager
    def metadata(self) -> Iterator[MetadataStore]:
        db = self._session_factory()
        try:
            yield MetadataStore(db)
        finally:
            db.close()

    def close(self) -> None:
        self.engine.dispose()

    def __repr__(self) -> str:
        return f"Generation({self.name!r}, {str(self.path)!r})"


class GenerationManager:
    """Owns the ``CURRENT`` pointer and the generation directories.

    Layout under ``generations_path``::

        gen-000001/          a complete generation
        staging-<uuid>/      a generation under construction

    and ``<storage_path>/CURRENT`` names the live generation. The pointer is
    only ever rewritten atomically, after the generation it names is
    complete on disk.
    """

    def __init__(self, storage_path: Path, generations_path: Optional[Path] = None):
        self.storage_path = Path(storage_path)
        self.generations_path = Path(generations_path) if generations_path else self.storage_path / "generations"
        self.pointer_path = self.storage_path / POINTER_FILE

    def current_name(self) -> Optional[str]:
        try:
            name = self.pointer_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        generation_number(name)
        return name

    def _write_pointer(self, name: str) -> None:
        atomic_write_text(self.pointer_path, name + "\n")

    def _pointer_names(self, name: str) -> bool:
        try:
            return self.current_name() == name
        except (OSError, StorageIOError):
            return False

    def recover(self) -> Generation:
        """Open the pointed generation, discarding anything a crash left behind"""
        self.storage_path.mkdir(parents=True, exist_ok=True)
        self.generations_path.mkdir(parents=True, exist_ok=True)

        name = self.current_name()
        if name is None:
            name = generation_name(1)
            (self.generations_path / name).mkdir(exist_ok=True)
            fsync_directory(self.generations_path)
            self._write_pointer(name)
            storage_logger.info("Initialized empty store", extra={"generation": name})
        elif not (self.generations_path / name).is_dir():
            raise StorageIOError(f"Live generation {name} is missing from {self.generations_path}")

        for entry in self.generations_path.iterdir():
            if entry.name == name or not entry.is_dir():
                continue
            if entry.name.startswith(STAGING_PREFIX) or entry.name.startswith(GENERATION_PREFIX):
                storage_logger.warning("Removing leftover generation directory", extra={
                    "directory": str(entry)
                })
                remove_tree(entry)

        storage_logger.info("Opened live generation", extra={"generation": name})
        return Generation(name, self.generations_path / name)

    def stage(self) -> Generation:
        """Create an empty generation that nothing points to yet"""
        name = f"{STAGING_PREFIX}{uuid4().hex}"
        try:
            staged = Generation(name, self.generations_path / name)
        except (OSError, SQLAlchemyError) as e:
            raise StorageIOError(f"Could not create staging area: {e}") from e
        storage_logger.info("Created staging area", extra={"staging": name})
        return staged

    def discard(self, staged: Generation) -> None:
        staged.close()
        remove_tree(staged.path)
        storage_logger.info("Discarded staging area", extra={"staging": staged.name})

    def promote(self, staged: Generation, current: Generation) -> Generation:
        """Rename a staged generation into place and repoint ``CURRENT`` at it"""
        name = generation_name(generation_number(current.name) + 1)
        target = self.generations_path / name
        staged.close()
        try:
            if target.exists():
                remove_tree(target)
            staged.path.rename(target)
            fsync_directory(self.generations_path)
        except OSError as e:
            raise StorageIOError(f"Could not move staging area into place: {e}") from e

        promoted = Generation(name, target)
        try:
            self._write_pointer(name)
        except OSError as e:
            if self._pointer_names(name):
                # The replace landed and only the flush after it failed
                storage_logger.warning("Pointer flush failed after repointing; keeping new generation", extra={
                    "generation": name,
                    "error": str(e)
                })
            else:
                promoted.close()
                remove_tree(target)
                raise StorageIOError(f"Could not repoint live generation: {e}") from e

        storage_logger.info("Repointed live generation", extra={
            "previous": current.name,
            "generation": name
        })
        return promoted

    def retire(self, generation: Generation) -> None:
        generation.close()
        if not remove_tree(generation.path):
            storage_logger.warning("Old generation left on disk; it is removed on next startup", extra={
                "generation": generation.name
            })
