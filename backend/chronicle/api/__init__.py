# backend/chronicle/api/__init__.py
from .projects import router as projects_router
from .photos import router as photos_router
from .backup import router as backup_router

__all__ = ["projects_router", "photos_router", "backup_router"]
