# backend/chronicle/services/archive.py
import io
import json
import zipfile
import zlib
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Tuple

from pydantic import ValidationError as SchemaValidationError

from ..database import utcnow
from ..errors import CorruptArchiveError, NotFoundError, StorageIOError, UnsupportedArchiveVersionError
from ..schemas.archive import ARCHIVE_FORMAT, ArchiveManifest, PhotoEntry, ProjectEntry
from ..storage import Store
from ..storage.blobs import compute_asset_id, is_asset_id
from ..utils.logging import service_logger

ARCHIVE_VERSION = 1
METADATA_ENTRY = "metadata.json"
ASSET_PREFIX = "assets/"

_ZIP_READ_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError)


@dataclass(frozen=True)
class CandidateState:
    """A fully decoded archive, staged in memory and never yet live"""
    projects: Tuple[ProjectEntry, ...] = ()
    photos: Tuple[PhotoEntry, ...] = ()
    blobs: Mapping[str, bytes] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "projects", tuple(self.projects))
        object.__setattr__(self, "photos", tuple(self.photos))
        object.__setattr__(self, "blobs", MappingProxyType(dict(self.blobs)))

    def integrity_problems(self) -> List[str]:
        """Describe every reference that does not resolve inside the candidate"""
        project_ids = {project.id for project in self.projects}
        problems = [
            f"asset {asset_id} does not match its content"
            for asset_id, content in self.blobs.items()
            if compute_asset_id(content) != asset_id
        ]
        for photo in self.photos:
            if photo.project_id not in project_ids:
                problems.append(f"photo {photo.id} references missing project {photo.project_id}")
            if photo.asset_id not in self.blobs:
                problems.append(f"photo {photo.id} references missing asset {photo.asset_id}")
        return problems

    def orphan_asset_ids(self) -> List[str]:
        referenced = {photo.asset_id for photo in self.photos}
        return sorted(asset_id for asset_id in self.blobs if asset_id not in referenced)


def _duplicates(values) -> List:
    return sorted(value for value, count in Counter(values).items() if count > 1)


class ArchiveCodec:
    """Converts between the live store and a single portable ZIP archive.

    The archive holds ``metadata.json`` (format tag, version, every project
    and photo record) and one ``assets/<asset_id>`` entry per referenced
    blob.
    """

    def __init__(self, store: Store):
        self.store = store

    def export(self) -> bytes:
        """Serialize a consistent point-in-time view of the whole store"""
        buffer = io.BytesIO()
        with self.store.access() as generation:
            with generation.metadata() as metadata:
                projects, photos = metadata.snapshot()

            manifest = ArchiveManifest(
                format=ARCHIVE_FORMAT,
                version=ARCHIVE_VERSION,
                exported_at=utcnow(),
                projects=[ProjectEntry.model_validate(project) for project in projects],
                photos=[PhotoEntry.model_validate(photo) for photo in photos],
            )

            written = set()
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                archive.writestr(METADATA_ENTRY, manifest.model_dump_json(indent=2))
                for photo in manifest.photos:
                    if photo.asset_id in written:
                        continue
                    try:
                        content = generation.blobs.get(photo.asset_id)
                    except NotFoundError as e:
                        service_logger.error("Live photo references a missing blob", extra={
                            "photo_id": photo.id,
                            "asset_id": photo.asset_id
                        })
                        raise StorageIOError(f"Blob {photo.asset_id} of photo {photo.id} is missing") from e
                    # Images are already compressed
                    archive.writestr(ASSET_PREFIX + photo.asset_id, content, compress_type=zipfile.ZIP_STORED)
                    written.add(photo.asset_id)

        data = buffer.getvalue()
        service_logger.info("Exported archive", extra={
            "generation": generation.name,
            "project_count": len(manifest.projects),
            "photo_count": len(manifest.photos),
            "asset_count": len(written),
            "size": len(data)
        })
        return data

    @staticmethod
    def parse(data: bytes) -> CandidateState:
        """Decode and validate an archive without touching the live store"""
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except _ZIP_READ_ERRORS as e:
            raise CorruptArchiveError(f"Not a readable ZIP archive: {e}") from e

        with archive:
            manifest = ArchiveCodec._read_manifest(archive)
            blobs = ArchiveCodec._read_payloads(archive)

        duplicate_projects = _duplicates(project.id for project in manifest.projects)
        if duplicate_projects:
            raise CorruptArchiveError(f"Duplicate project ids in archive: {duplicate_projects}")
        duplicate_photos = _duplicates(photo.id for photo in manifest.photos)
        if duplicate_photos:
            raise CorruptArchiveError(f"Duplicate photo ids in archive: {duplicate_photos}")

        missing = sorted({photo.asset_id for photo in manifest.photos if photo.asset_id not in blobs})
        if missing:
            raise CorruptArchiveError(
                f"Archive is missing {len(missing)} asset payload(s) referenced by photos: {missing[:5]}"
            )

        candidate = CandidateState(projects=manifest.projects, photos=manifest.photos, blobs=blobs)
        orphans = candidate.orphan_asset_ids()
        if orphans:
            service_logger.warning("Archive contains payloads no photo references", extra={
                "orphan_count": len(orphans)
            })
        service_logger.info("Parsed archive", extra={
            "version": manifest.version,
            "project_count": len(candidate.projects),
            "photo_count": len(candidate.photos),
            "asset_count": len(candidate.blobs)
        })
        return candidate

    @staticmethod
    def _read_manifest(archive: zipfile.ZipFile) -> ArchiveManifest:
        try:
            raw = archive.read(METADATA_ENTRY)
        except KeyError:
            raise CorruptArchiveError(f"Archive has no {METADATA_ENTRY}") from None
        except _ZIP_READ_ERRORS as e:
            raise CorruptArchiveError(f"Could not read {METADATA_ENTRY}: {e}") from e

        try:
            document = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptArchiveError(f"{METADATA_ENTRY} is not valid JSON: {e}") from e

        if not isinstance(document, dict) or document.get("format") != ARCHIVE_FORMAT:
            raise CorruptArchiveError("Archive is not a chronicle archive")

        version = document.get("version")
        if isinstance(version, bool) or not isinstance(version, int) or not 1 <= version <= ARCHIVE_VERSION:
            raise UnsupportedArchiveVersionError(version, ARCHIVE_VERSION)

        try:
            return ArchiveManifest.model_validate(document)
        except SchemaValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise CorruptArchiveError(
                f"Invalid metadata entry at {location}: {first['msg']} ({e.error_count()} error(s))"
            ) from e

    @staticmethod
    def _read_payloads(archive: zipfile.ZipFile) -> dict[str, bytes]:
        blobs = {}
        for info in archive.infolist():
            if info.is_dir() or not info.filename.startswith(ASSET_PREFIX):
                continue
            asset_id = info.filename[len(ASSET_PREFIX):]
            if not is_asset_id(asset_id):
                raise CorruptArchiveError(f"Unexpected payload entry {info.filename!r}")
            if asset_id in blobs:
                raise CorruptArchiveError(f"Duplicate payload entry for asset {asset_id}")
            try:
                content = archive.read(info)
            except _ZIP_READ_ERRORS as e:
                raise CorruptArchiveError(f"Could not read payload for asset {asset_id}: {e}") from e
            if compute_asset_id(content) != asset_id:
                raise CorruptArchiveError(f"Payload for asset {asset_id} does not match its id")
            blobs[asset_id] = content
        return blobs
