# backend/chronicle/schemas/archive.py
from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from ..models.photo import DEFAULT_CONTENT_TYPE

ARCHIVE_FORMAT = "chronicle-archive"
ASSET_ID_PATTERN = r"^[0-9a-f]{64}$"

# Same rule as names entered through the API: stripped, then non-empty
ProjectName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class ArchiveEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True, extra="ignore")


class ProjectEntry(ArchiveEntry):
    id: int
    name: ProjectName
    description: Optional[str] = None
    created_at: datetime


class PhotoEntry(ArchiveEntry):
    id: int
    project_id: int
    asset_id: str = Field(pattern=ASSET_ID_PATTERN)
    original_date: datetime
    caption: Optional[str] = None
    # Absent from version 1 archives written before photos carried a type
    content_type: str = DEFAULT_CONTENT_TYPE
    created_at: datetime


class ArchiveManifest(BaseModel):
    format: Literal["chronicle-archive"]
    version: int
    exported_at: datetime
    projects: List[ProjectEntry] = []
    photos: List[PhotoEntry] = []


class RestoreReport(BaseModel):
    success: bool = True
    projects: int
    photos: int
    assets: int
