# backend/chronicle/api/backup.py
from fastapi import APIRouter, Depends, File, Request, Response, UploadFile
from starlette.concurrency import run_in_threadpool

from ..database import utcnow
from ..errors import ValidationError
from ..schemas.archive import RestoreReport
from ..services.library import LibraryService
from ..utils.logging import api_logger
from .dependencies import get_library

router = APIRouter(prefix="/api/backup", tags=["backup"])


@router.get("/export")
def export_backup(library: LibraryService = Depends(get_library)):
    """Download the whole store as one ZIP archive"""
    data = library.export_archive()
    filename = f"chronicle-backup-{utcnow():%Y%m%d-%H%M%S}.zip"
    api_logger.info("Sending archive", extra={"archive_name": filename, "size": len(data)})
    return Response(
        content=data,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.post("/import", response_model=RestoreReport)
async def import_backup(
        request: Request,
        backup: UploadFile = File(...),
        library: LibraryService = Depends(get_library)
):
    """Replace everything in the store with the uploaded archive"""
    max_bytes = request.app.state.settings.MAX_ARCHIVE_BYTES
    data = await backup.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise ValidationError(f"Archive exceeds the {max_bytes} byte upload limit")

    api_logger.info("Importing archive upload", extra={
        "file_name": backup.filename,
        "size": len(data)
    })
    return await run_in_threadpool(library.import_archive, data)
