# backend/chronicle/models/photo.py
from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from ..database import Base, UTCDateTime, utcnow

DEFAULT_CONTENT_TYPE = "image/jpeg"


class Photo(Base):
    __tablename__ = "photos"
    __table_args__ = (
        Index("ix_photos_project_original_date", "project_id", "original_date"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    asset_id = Column(String(64), nullable=False, index=True)
    original_date = Column(UTCDateTime, nullable=False)
    caption = Column(Text, nullable=True)
    content_type = Column(String(100), nullable=False, default=DEFAULT_CONTENT_TYPE)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    project = relationship("Project", back_populates="photos")
