# backend/chronicle/services/library.py
from datetime import datetime
from typing import List, Optional, Tuple, Union

from ..database import utcnow
from ..errors import StorageIOError, ValidationError
from ..schemas.archive import RestoreReport
from ..schemas.photo import Photo, PhotoOrder
from ..schemas.project import Project, ProjectDetail
from ..storage import Store, compute_asset_id
from ..storage.metadata import UNCHANGED
from ..utils.images import inspect_image
from ..utils.logging import service_logger
from .archive import ArchiveCodec
from .cleanup import cleanup_service
from .restore import RestoreCoordinator


def _parse_order(order: Union[PhotoOrder, str]) -> PhotoOrder:
    try:
        return PhotoOrder(order)
    except ValueError:
        raise ValidationError(
            f"Unknown photo order {order!r}; expected one of {[o.value for o in PhotoOrder]}"
        ) from None


class LibraryService:
    """Project and photo operations over one explicit :class:`Store`"""

    def __init__(self, store: Store, coordinator: Optional[RestoreCoordinator] = None):
        self.store = store
        self.codec = ArchiveCodec(store)
        self.coordinator = coordinator or RestoreCoordinator(store)

    # Projects

    def list_projects(self) -> List[ProjectDetail]:
        with self.store.access() as generation, generation.metadata() as metadata:
            counts = metadata.photo_counts()
            return [
                ProjectDetail(
                    **Project.model_validate(project).model_dump(),
                    photo_count=counts.get(project.id, 0)
                )
                for project in metadata.list_projects()
            ]

    def get_project(self, project_id: int) -> ProjectDetail:
        with self.store.access() as generation, generation.metadata() as metadata:
            project = metadata.get_project(project_id)
            return ProjectDetail(
                **Project.model_validate(project).model_dump(),
                photo_count=metadata.count_photos(project_id)
            )

    def create_project(self, name: str, description: Optional[str] = None) -> Project:
        with self.store.access() as generation, generation.metadata() as metadata:
            return Project.model_validate(metadata.create_project(name, description))

    def update_project(self, project_id: int, name: Optional[str] = None,
                       description=UNCHANGED) -> Project:
        with self.store.access() as generation, generation.metadata() as metadata:
            return Project.model_validate(metadata.update_project(project_id, name, description))

    def delete_project(self, project_id: int) -> None:
        with self.store.access() as generation:
            cleanup_service.delete_project(generation, project_id)

    # Photos

    def list_photos(self, project_id: int, order: Union[PhotoOrder, str] = PhotoOrder.NEWEST_FIRST) -> List[Photo]:
        photo_order = _parse_order(order)
        with self.store.access() as generation, generation.metadata() as metadata:
            return [Photo.model_validate(photo) for photo in metadata.list_photos(project_id, photo_order)]

    def add_photo(self, project_id: int, content: bytes, original_date: Optional[datetime] = None,
                  caption: Optional[str] = None, content_type: Optional[str] = None) -> Photo:
        """Store new image content and its photo record in the given project.

        The blob is durably written before the record is committed, so a
        photo is never visible without its image. When no capture time is
        given, the EXIF ``DateTimeOriginal`` is used, then the current time.
        """
        if not content:
            raise ValidationError("Photo content must not be empty")
        info = inspect_image(content)
        taken_at = original_date or info.taken_at or utcnow()

        with self.store.access() as generation, generation.metadata() as metadata:
            metadata.get_project(project_id)

            fresh_blob = not generation.blobs.exists(compute_asset_id(content))
            asset_id = generation.blobs.put(content)
            try:
                photo = metadata.create_photo(
                    project_id,
                    asset_id,
                    taken_at,
                    caption=caption,
                    content_type=content_type or info.content_type,
                )
            except Exception:
                if fresh_blob:
                    cleanup_service.release_assets(generation, metadata, [asset_id])
                raise
            return Photo.model_validate(photo)

    def get_photo(self, photo_id: int) -> Photo:
        with self.store.access() as generation, generation.metadata() as metadata:
            return Photo.model_validate(metadata.get_photo(photo_id))

    def get_photo_content(self, photo_id: int) -> Tuple[bytes, str]:
        with self.store.access() as generation, generation.metadata() as metadata:
            photo = metadata.get_photo(photo_id)
            return generation.blobs.get(photo.asset_id), photo.content_type

    def update_photo(self, photo_id: int, caption: Optional[str]) -> Photo:
        with self.store.access() as generation, generation.metadata() as metadata:
            return Photo.model_validate(metadata.update_photo(photo_id, caption))

    def delete_photo(self, photo_id: int) -> None:
        with self.store.access() as generation:
            cleanup_service.delete_photo(generation, photo_id)

    # Backup

    def export_archive(self) -> bytes:
        return self.codec.export()

    def import_archive(self, data: bytes) -> RestoreReport:
        service_logger.info("Importing archive", extra={"size": len(data)})
        try:
            return self.coordinator.import_archive(data)
        except StorageIOError:
            service_logger.critical("Archive import failed on storage; live store kept", exc_info=True)
            raise
