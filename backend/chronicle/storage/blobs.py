# backend/chronicle/storage/blobs.py
import hashlib
import re
from pathlib import Path
from typing import Iterator

from ..errors import NotFoundError, StorageIOError
from ..utils.files import delete_file, write_durable
from ..utils.logging import storage_logger

_ASSET_ID = re.compile(r"^[0-9a-f]{64}$")


def compute_asset_id(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def is_asset_id(value: str) -> bool:
    return bool(_ASSET_ID.match(value))


class BlobStore:
    """Content-addressed, immutable blob files under one generation directory.

    An asset id is the sha256 hex digest of the content, so identical images
    share one file and ``put`` is idempotent. Files are laid out as
    ``<root>/<id[:2]>/<id>``.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path_for(self, asset_id: str) -> Path:
        return self.root / asset_id[:2] / asset_id

    def put(self, content: bytes) -> str:
        """Store content durably and return its asset id"""
        asset_id = compute_asset_id(content)
        path = self._path_for(asset_id)
        if path.exists():
            storage_logger.debug("Blob already stored", extra={"asset_id": asset_id})
            return asset_id

        try:
            write_durable(path, content)
        except OSError as e:
            storage_logger.error("Failed to write blob", extra={
                "asset_id": asset_id,
                "error": str(e)
            })
            raise StorageIOError(f"Could not write blob {asset_id}: {e}") from e

        storage_logger.debug("Stored blob", extra={"asset_id": asset_id, "size": len(content)})
        return asset_id

    def get(self, asset_id: str) -> bytes:
        if not is_asset_id(asset_id):
            raise NotFoundError("Blob", asset_id)
        try:
            return self._path_for(asset_id).read_bytes()
        except FileNotFoundError:
            raise NotFoundError("Blob", asset_id) from None
        except OSError as e:
            raise StorageIOError(f"Could not read blob {asset_id}: {e}") from e

    def exists(self, asset_id: str) -> bool:
        return is_asset_id(asset_id) and self._path_for(asset_id).is_file()

    def delete(self, asset_id: str) -> None:
        """Remove a blob; deleting a missing blob is not an error"""
        if not is_asset_id(asset_id):
            return
        try:
            if delete_file(self._path_for(asset_id)):
                storage_logger.debug("Deleted blob", extra={"asset_id": asset_id})
        except OSError as e:
            raise StorageIOError(f"Could not delete blob {asset_id}: {e}") from e

    def asset_ids(self) -> Iterator[str]:
        if not self.root.exists():
            return
        for path in sorted(self.root.glob("??/*")):
            if path.is_file() and is_asset_id(path.name):
                yield path.name
