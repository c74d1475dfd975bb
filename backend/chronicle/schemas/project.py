# backend/chronicle/schemas/project.py
from typing import Optional
from .base import BaseSchema, TimestampMixin

class ProjectBase(BaseSchema):
    name: str
    description: Optional[str] = None

class ProjectCreate(ProjectBase):
    pass

class ProjectUpdate(BaseSchema):
    name: Optional[str] = None
    description: Optional[str] = None

class Project(ProjectBase, TimestampMixin):
    id: int

class ProjectDetail(Project):
    photo_count: int
