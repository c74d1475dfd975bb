# backend/chronicle/__init__.py
from .config import settings
from .errors import (
    ChronicleError,
    ValidationError,
    NotFoundError,
    CorruptArchiveError,
    UnsupportedArchiveVersionError,
    IntegrityError,
    StoreBusyError,
    StorageIOError,
)
from .storage import Store
from .services import LibraryService, ArchiveCodec, RestoreCoordinator

__version__ = "0.1.0"
