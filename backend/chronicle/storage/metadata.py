# backend/chronicle/storage/metadata.py
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import as_utc, utcnow
from ..errors import NotFoundError, StorageIOError, ValidationError
from ..models import DEFAULT_CONTENT_TYPE, Photo, Project
from ..schemas.archive import PhotoEntry, ProjectEntry
from ..schemas.photo import PhotoOrder
from ..utils.logging import db_logger

MAX_NAME_LENGTH = 255
# Marks an optional field an update leaves as it is; None clears it
UNCHANGED = object()


def clean_project_name(name: Optional[str]) -> str:
    """Strip a project name and reject empty or oversized values"""
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Project name must not be empty")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValidationError(f"Project name must be at most {MAX_NAME_LENGTH} characters")
    return cleaned


class MetadataStore:
    """Project and photo records of one generation, accessed through a session.

    Every mutating call is a single transaction: it commits on success and
    rolls back before re-raising on failure.
    """

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, operation: str, **context) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            db_logger.error(f"Failed to {operation}", extra={**context, "error": str(e)})
            raise StorageIOError(f"Could not {operation}: {e}") from e

    # Projects

    def create_project(self, name: str, description: Optional[str] = None) -> Project:
        project = Project(name=clean_project_name(name), description=description, created_at=utcnow())
        self.db.add(project)
        self._commit("create project", project_name=project.name)
        db_logger.info("Project created", extra={"project_id": project.id, "project_name": project.name})
        return project

    def get_project(self, project_id: int) -> Project:
        project = self.db.get(Project, project_id)
        if project is None:
            raise NotFoundError("Project", project_id)
        return project

    def update_project(self, project_id: int, name: Optional[str] = None,
                       description=UNCHANGED) -> Project:
        project = self.get_project(project_id)
        if name is not None:
            project.name = clean_project_name(name)
        if description is not UNCHANGED:
            project.description = description
        self._commit("update project", project_id=project_id)
        return project

    def delete_project(self, project_id: int) -> None:
        """Delete a project and, in the same transaction, all of its photos"""
        project = self.get_project(project_id)
        self.db.delete(project)
        self._commit("delete project", project_id=project_id)
        db_logger.info("Project deleted", extra={"project_id": project_id})

    def list_projects(self) -> List[Project]:
        return (
            self.db.query(Project)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .all()
        )

    def count_photos(self, project_id: int) -> int:
        return self.db.query(func.count(Photo.id)).filter(Photo.project_id == project_id).scalar() or 0

    def photo_counts(self) -> dict[int, int]:
        rows = self.db.query(Photo.project_id, func.count(Photo.id)).group_by(Photo.project_id).all()
        return {project_id: count for project_id, count in rows}

    # Photos

    def create_photo(self, project_id: int, asset_id: str, original_date: datetime,
                     caption: Optional[str] = None,
                     content_type: Optional[str] = None) -> Photo:
        # Checked before the insert so no orphan record is ever written
        self.get_project(project_id)

        photo = Photo(
            project_id=project_id,
            asset_id=asset_id,
            original_date=as_utc(original_date),
            caption=caption,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            created_at=utcnow(),
        )
        self.db.add(photo)
        self._commit("create photo", project_id=project_id, asset_id=asset_id)
        db_logger.info("Photo created", extra={
            "photo_id": photo.id,
            "project_id": project_id,
            "asset_id": asset_id
        })
        return photo

    def get_photo(self, photo_id: int) -> Photo:
        photo = self.db.get(Photo, photo_id)
        if photo is None:
            raise NotFoundError("Photo", photo_id)
        return photo

    def update_photo(self, photo_id: int, caption: Optional[str]) -> Photo:
        photo = self.get_photo(photo_id)
        photo.caption = caption
        self._commit("update photo", photo_id=photo_id)
        return photo

    def delete_photo(self, photo_id: int) -> Photo:
        photo = self.get_photo(photo_id)
        self.db.delete(photo)
        self._commit("delete photo", photo_id=photo_id)
        db_logger.info("Photo deleted", extra={"photo_id": photo_id, "asset_id": photo.asset_id})
        return photo

    def list_photos(self, project_id: int, order: PhotoOrder = PhotoOrder.NEWEST_FIRST) -> List[Photo]:
        self.get_project(project_id)
        if order == PhotoOrder.NEWEST_FIRST:
            date_order = Photo.original_date.desc()
        else:
            date_order = Photo.original_date.asc()
        return (
            self.db.query(Photo)
            .filter(Photo.project_id == project_id)
            .order_by(date_order, Photo.id.asc())
            .all()
        )

    def photo_asset_ids(self, project_id: int) -> List[str]:
        rows = self.db.query(Photo.asset_id).filter(Photo.project_id == project_id).distinct().all()
        return [row[0] for row in rows]

    def count_asset_references(self, asset_id: str) -> int:
        return self.db.query(func.count(Photo.id)).filter(Photo.asset_id == asset_id).scalar() or 0

    # Whole-store access used by export and restore

    def snapshot(self) -> tuple[List[Project], List[Photo]]:
        projects = self.db.query(Project).order_by(Project.id.asc()).all()
        photos = self.db.query(Photo).order_by(Photo.id.asc()).all()
        return projects, photos

    def sequence_floors(self) -> dict[str, int]:
        """Highest id ever handed out per table, including deleted rows"""
        rows = self.db.execute(text("SELECT name, seq FROM sqlite_sequence")).all()
        return {name: seq for name, seq in rows}

    def load(self, projects: Iterable[ProjectEntry], photos: Iterable[PhotoEntry],
             sequence_floors: Optional[dict[str, int]] = None) -> None:
        """Bulk insert archive entries with their ids and timestamps preserved"""
        try:
            for entry in projects:
                self.db.add(Project(
                    id=entry.id,
                    name=entry.name,
                    description=entry.description,
                    created_at=as_utc(entry.created_at),
                ))
            # Projects must exist before photos reference them
            self.db.flush()
            for entry in photos:
                self.db.add(Photo(
                    id=entry.id,
                    project_id=entry.project_id,
                    asset_id=entry.asset_id,
                    original_date=as_utc(entry.original_date),
                    caption=entry.caption,
                    content_type=entry.content_type,
                    created_at=as_utc(entry.created_at),
                ))
            self.db.flush()

            if sequence_floors:
                current = self.sequence_floors()
                for table in (Project.__tablename__, Photo.__tablename__):
                    seq = max(current.get(table, 0), sequence_floors.get(table, 0))
                    self.db.execute(text("DELETE FROM sqlite_sequence WHERE name = :name"), {"name": table})
                    self.db.execute(
                        text("INSERT INTO sqlite_sequence (name, seq) VALUES (:name, :seq)"),
                        {"name": table, "seq": seq}
                    )
        except SQLAlchemyError as e:
            self.db.rollback()
            db_logger.error("Failed to load archive records", extra={"error": str(e)})
            raise StorageIOError(f"Could not load archive records: {e}") from e

        self._commit("load archive records")
