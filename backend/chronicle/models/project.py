# backend/chronicle/models/project.py
from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship
from ..database import Base, UTCDateTime, utcnow

class Project(Base):
    __tablename__ = "projects"
    __table_args__ = {"sqlite_autoincrement": True}  # ids are never reused

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    photos = relationship("Photo", back_populates="project", cascade="all, delete-orphan")
