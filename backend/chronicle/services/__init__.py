# backend/chronicle/services/__init__.py
from .archive import ArchiveCodec, CandidateState, ARCHIVE_VERSION
from .cleanup import cleanup_service
from .library import LibraryService
from .restore import RestoreCoordinator, RestoreState

__all__ = [
    "ArchiveCodec", "CandidateState", "ARCHIVE_VERSION",
    "cleanup_service",
    "LibraryService",
    "RestoreCoordinator", "RestoreState"
]
