# backend/chronicle/schemas/photo.py
import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .base import BaseSchema, TimestampMixin


class PhotoOrder(str, enum.Enum):
    NEWEST_FIRST = "newest_first"  # gallery
    OLDEST_FIRST = "oldest_first"  # timeline


class PhotoUpdate(BaseModel):
    caption: Optional[str] = None


class Photo(BaseSchema, TimestampMixin):
    id: int
    project_id: int
    asset_id: str
    original_date: datetime
    caption: Optional[str] = None
    content_type: str
