# tests/services/test_archive_codec.py
import io
import json
import zipfile
from datetime import datetime, timezone

import pytest

from chronicle.errors import CorruptArchiveError, UnsupportedArchiveVersionError
from chronicle.services.archive import ARCHIVE_VERSION, ArchiveCodec
from chronicle.storage.blobs import compute_asset_id


def build_archive(metadata, payloads=None, raw_metadata=None) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        if raw_metadata is not None:
            archive.writestr("metadata.json", raw_metadata)
        elif metadata is not None:
            archive.writestr("metadata.json", json.dumps(metadata))
        for name, content in (payloads or {}).items():
            archive.writestr(f"assets/{name}", content)
    return buf.getvalue()


def manifest(projects=(), photos=(), version=1):
    return {
        "format": "chronicle-archive",
        "version": version,
        "exported_at": "2024-02-01T00:00:00+00:00",
        "projects": list(projects),
        "photos": list(photos),
    }


def project_entry(project_id=1, name="Trip"):
    return {
        "id": project_id,
        "name": name,
        "description": None,
        "created_at": "2024-01-01T00:00:00+00:00",
    }


def photo_entry(photo_id, asset_id, project_id=1, **fields):
    entry = {
        "id": photo_id,
        "project_id": project_id,
        "asset_id": asset_id,
        "original_date": "2024-01-01T09:00:00+00:00",
        "caption": None,
        "created_at": "2024-01-02T00:00:00+00:00",
    }
    entry.update(fields)
    return entry


def test_export_contains_metadata_and_payloads(library, sample_project, sample_photo):
    data = library.export_archive()

    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        document = json.loads(archive.read("metadata.json"))
        payload = archive.read(f"assets/{sample_photo.asset_id}")

    assert document["format"] == "chronicle-archive"
    assert document["version"] == ARCHIVE_VERSION
    assert [p["name"] for p in document["projects"]] == ["Test Project"]
    assert document["photos"][0]["caption"] == "First light"
    assert document["photos"][0]["asset_id"] == sample_photo.asset_id
    assert compute_asset_id(payload) == sample_photo.asset_id


def test_export_writes_shared_assets_once(library, sample_project, image_bytes):
    content = image_bytes()
    library.add_photo(sample_project.id, content)
    library.add_photo(sample_project.id, content)

    with zipfile.ZipFile(io.BytesIO(library.export_archive())) as archive:
        assets = [n for n in archive.namelist() if n.startswith("assets/")]

    assert assets == [f"assets/{compute_asset_id(content)}"]


def test_parse_round_trips_export(library, sample_project, sample_photo):
    candidate = ArchiveCodec.parse(library.export_archive())

    assert [p.id for p in candidate.projects] == [sample_project.id]
    assert candidate.projects[0].created_at == sample_project.created_at
    assert candidate.photos[0].original_date == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert candidate.photos[0].content_type == "image/jpeg"
    assert set(candidate.blobs) == {sample_photo.asset_id}
    assert candidate.integrity_problems() == []


def test_parse_rejects_non_zip():
    with pytest.raises(CorruptArchiveError):
        ArchiveCodec.parse(b"definitely not a zip file")


def test_parse_rejects_missing_metadata():
    with pytest.raises(CorruptArchiveError, match="metadata.json"):
        ArchiveCodec.parse(build_archive(None, {"x": b""}))


def test_parse_rejects_invalid_json():
    with pytest.raises(CorruptArchiveError, match="not valid JSON"):
        ArchiveCodec.parse(build_archive(None, raw_metadata="{not json"))


def test_parse_rejects_foreign_format():
    document = manifest()
    document["format"] = "something-else"

    with pytest.raises(CorruptArchiveError, match="not a chronicle archive"):
        ArchiveCodec.parse(build_archive(document))


@pytest.mark.parametrize("version", [ARCHIVE_VERSION + 1, 0, "1", None])
def test_parse_rejects_unsupported_versions(version):
    with pytest.raises(UnsupportedArchiveVersionError, match="Unsupported archive version"):
        ArchiveCodec.parse(build_archive(manifest(version=version)))


def test_parse_rejects_undecodable_entries():
    broken = project_entry()
    broken["created_at"] = "yesterday-ish"

    with pytest.raises(CorruptArchiveError, match="projects.0.created_at"):
        ArchiveCodec.parse(build_archive(manifest(projects=[broken])))


def test_parse_rejects_missing_payload():
    asset_id = compute_asset_id(b"lost")
    document = manifest(projects=[project_entry()], photos=[photo_entry(1, asset_id)])

    with pytest.raises(CorruptArchiveError, match="missing 1 asset payload"):
        ArchiveCodec.parse(build_archive(document))


def test_parse_rejects_payload_hash_mismatch():
    asset_id = compute_asset_id(b"original")
    document = manifest(projects=[project_entry()], photos=[photo_entry(1, asset_id)])

    with pytest.raises(CorruptArchiveError, match="does not match"):
        ArchiveCodec.parse(build_archive(document, {asset_id: b"tampered"}))


def test_parse_rejects_duplicate_ids():
    document = manifest(projects=[project_entry(1), project_entry(1, "Again")])

    with pytest.raises(CorruptArchiveError, match="Duplicate project ids"):
        ArchiveCodec.parse(build_archive(document))


@pytest.mark.parametrize("name", ["", "   ", "\t\n"])
def test_parse_rejects_blank_project_names(name):
    document = manifest(projects=[project_entry(name=name)])

    with pytest.raises(CorruptArchiveError, match="projects.0.name"):
        ArchiveCodec.parse(build_archive(document))


def test_parse_strips_project_names():
    document = manifest(projects=[project_entry(name="  Trip  ")])

    candidate = ArchiveCodec.parse(build_archive(document))

    assert candidate.projects[0].name == "Trip"


def test_parse_tolerates_orphan_payloads():
    used, orphan = b"used", b"orphan"
    document = manifest(projects=[project_entry()], photos=[photo_entry(1, compute_asset_id(used))])

    candidate = ArchiveCodec.parse(build_archive(document, {
        compute_asset_id(used): used,
        compute_asset_id(orphan): orphan,
    }))

    assert candidate.orphan_asset_ids() == [compute_asset_id(orphan)]
    assert len(candidate.blobs) == 2


def test_parse_defaults_content_type_for_older_entries():
    content = b"jpeg"
    document = manifest(projects=[project_entry()], photos=[photo_entry(1, compute_asset_id(content))])

    candidate = ArchiveCodec.parse(build_archive(document, {compute_asset_id(content): content}))

    assert candidate.photos[0].content_type == "image/jpeg"


def test_parse_leaves_dangling_projects_to_restore():
    content = b"jpeg"
    document = manifest(photos=[photo_entry(1, compute_asset_id(content), project_id=42)])

    candidate = ArchiveCodec.parse(build_archive(document, {compute_asset_id(content): content}))

    assert candidate.integrity_problems() == ["photo 1 references missing project 42"]
