# backend/chronicle/services/cleanup.py
from typing import Iterable, List

from ..errors import StorageIOError
from ..models import Photo
from ..storage import Generation, MetadataStore
from ..utils.logging import service_logger


class CleanupService:
    """Service to handle cascading deletion of photos and their blobs.

    Metadata is always removed first, in one transaction; blobs are deleted
    afterwards, and only once no remaining photo references them. A blob
    that cannot be deleted is an orphan: logged, never raised.
    """

    @staticmethod
    def release_assets(generation: Generation, metadata: MetadataStore, asset_ids: Iterable[str]) -> List[str]:
        """Delete blobs no photo references any more; returns the ids removed"""
        released = []
        for asset_id in asset_ids:
            if metadata.count_asset_references(asset_id):
                service_logger.debug("Blob still referenced, keeping it", extra={"asset_id": asset_id})
                continue
            try:
                generation.blobs.delete(asset_id)
                released.append(asset_id)
            except StorageIOError as e:
                service_logger.warning("Orphan blob leaked after metadata deletion", extra={
                    "asset_id": asset_id,
                    "generation": generation.name,
                    "error": str(e)
                })
        return released

    @staticmethod
    def delete_photo(generation: Generation, photo_id: int) -> Photo:
        """Delete a photo record, then its blob if nothing else uses it"""
        with generation.metadata() as metadata:
            photo = metadata.delete_photo(photo_id)
            CleanupService.release_assets(generation, metadata, [photo.asset_id])
        return photo

    @staticmethod
    def delete_project(generation: Generation, project_id: int) -> None:
        """Delete a project with all of its photos, then their blobs"""
        with generation.metadata() as metadata:
            metadata.get_project(project_id)
            asset_ids = metadata.photo_asset_ids(project_id)

            # Photos go with the project in the same transaction
            metadata.delete_project(project_id)

            released = CleanupService.release_assets(generation, metadata, asset_ids)

        service_logger.info(f"Deleted all artifacts for project {project_id}", extra={
            "project_id": project_id,
            "released_assets": len(released)
        })


cleanup_service = CleanupService()
