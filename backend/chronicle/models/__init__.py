# backend/chronicle/models/__init__.py
from ..database import Base
from .project import Project
from .photo import Photo, DEFAULT_CONTENT_TYPE

__all__ = [
    "Base",
    "Project",
    "Photo",
    "DEFAULT_CONTENT_TYPE"
]
