# backend/chronicle/schemas/__init__.py
from .project import Project, ProjectCreate, ProjectUpdate, ProjectDetail
from .photo import Photo, PhotoUpdate, PhotoOrder
from .archive import ArchiveManifest, ProjectEntry, PhotoEntry, RestoreReport

__all__ = [
    "Project", "ProjectCreate", "ProjectUpdate", "ProjectDetail",
    "Photo", "PhotoUpdate", "PhotoOrder",
    "ArchiveManifest", "ProjectEntry", "PhotoEntry", "RestoreReport"
]
