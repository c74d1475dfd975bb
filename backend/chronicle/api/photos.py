# backend/chronicle/api/photos.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from starlette.concurrency import run_in_threadpool

from ..schemas.photo import Photo as PhotoSchema, PhotoOrder, PhotoUpdate
from ..services.library import LibraryService
from ..utils.logging import api_logger
from .dependencies import get_library

router = APIRouter(prefix="/api/photos", tags=["photos"])


@router.get("", response_model=List[PhotoSchema])
def list_photos(
        project_id: int,
        order: PhotoOrder = PhotoOrder.NEWEST_FIRST,
        library: LibraryService = Depends(get_library)
):
    """Photos of a project; newest_first for the gallery, oldest_first for the timeline"""
    photos = library.list_photos(project_id, order)
    api_logger.debug(f"Listed {len(photos)} photos", extra={
        "project_id": project_id,
        "order": order.value
    })
    return photos


@router.post("", response_model=PhotoSchema)
async def add_photo(
        project_id: int = Form(...),
        image: UploadFile = File(...),
        original_date: Optional[datetime] = Form(None),
        caption: Optional[str] = Form(None),
        library: LibraryService = Depends(get_library)
):
    content = await image.read()
    api_logger.info("Uploading photo", extra={
        "project_id": project_id,
        "file_name": image.filename,
        "file_size": len(content),
        "content_type": image.content_type
    })

    photo = await run_in_threadpool(
        library.add_photo,
        project_id,
        content,
        original_date=original_date,
        caption=caption,
    )

    api_logger.info(f"Photo {photo.id} created successfully", extra={
        "photo_id": photo.id,
        "project_id": project_id,
        "asset_id": photo.asset_id
    })
    return photo


@router.get("/{photo_id}", response_model=PhotoSchema)
def get_photo(photo_id: int, library: LibraryService = Depends(get_library)):
    return library.get_photo(photo_id)


@router.get("/{photo_id}/image")
def get_photo_image(photo_id: int, library: LibraryService = Depends(get_library)):
    content, content_type = library.get_photo_content(photo_id)
    return Response(
        content=content,
        media_type=content_type,
        headers={"Cache-Control": "private, max-age=31536000, immutable"}
    )


@router.put("/{photo_id}", response_model=PhotoSchema)
def update_photo(photo_id: int, photo_update: PhotoUpdate, library: LibraryService = Depends(get_library)):
    api_logger.info(f"Updating photo {photo_id}", extra={"photo_id": photo_id})
    return library.update_photo(photo_id, photo_update.caption)


@router.delete("/{photo_id}")
def delete_photo(photo_id: int, library: LibraryService = Depends(get_library)):
    api_logger.info(f"Deleting photo {photo_id}", extra={"photo_id": photo_id})
    library.delete_photo(photo_id)
    return {"success": True}
