# tests/storage/test_metadata_store.py
from datetime import datetime, timedelta, timezone

import pytest

from chronicle.errors import NotFoundError, ValidationError
from chronicle.schemas.photo import PhotoOrder

ASSET = "a" * 64


@pytest.fixture
def metadata(store):
    with store.access() as generation, generation.metadata() as metadata:
        yield metadata


def test_create_project(metadata):
    project = metadata.create_project("  Trip  ", "Summer")

    assert project.id is not None
    assert project.name == "Trip"
    assert project.description == "Summer"
    assert project.created_at.tzinfo is not None


@pytest.mark.parametrize("name", ["", "   ", None])
def test_create_project_requires_name(metadata, name):
    with pytest.raises(ValidationError):
        metadata.create_project(name)
    assert metadata.list_projects() == []


def test_project_ids_are_unique_and_never_reused(metadata):
    first = metadata.create_project("One")
    second = metadata.create_project("Two")
    assert first.id != second.id

    metadata.delete_project(second.id)
    third = metadata.create_project("Three")

    assert third.id > second.id


def test_list_projects_newest_first(metadata):
    older = metadata.create_project("Older")
    newer = metadata.create_project("Newer")

    assert [p.id for p in metadata.list_projects()] == [newer.id, older.id]


def test_update_project(metadata):
    project = metadata.create_project("Draft")

    updated = metadata.update_project(project.id, name="Final", description="Done")

    assert updated.name == "Final"
    assert updated.description == "Done"
    assert updated.created_at == project.created_at
    with pytest.raises(ValidationError):
        metadata.update_project(project.id, name=" ")


def test_update_project_leaves_or_clears_description(metadata):
    project = metadata.create_project("Draft", "Notes")

    assert metadata.update_project(project.id, name="Renamed").description == "Notes"
    assert metadata.update_project(project.id, description=None).description is None
    assert metadata.update_project(project.id).name == "Renamed"


def test_delete_missing_project(metadata):
    with pytest.raises(NotFoundError):
        metadata.delete_project(12345)


def test_create_photo_requires_existing_project(metadata):
    with pytest.raises(NotFoundError):
        metadata.create_photo(999, ASSET, datetime(2024, 1, 1, tzinfo=timezone.utc))

    project = metadata.create_project("Real")
    assert metadata.list_photos(project.id) == []


def test_naive_dates_are_treated_as_utc(metadata):
    project = metadata.create_project("Trip")

    photo = metadata.create_photo(project.id, ASSET, datetime(2024, 1, 1, 8, 30))

    stored = metadata.get_photo(photo.id)
    assert stored.original_date == datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc)


def test_list_photos_orders(metadata):
    project = metadata.create_project("Trip")
    dates = [
        datetime(2021, 1, 1, tzinfo=timezone.utc),
        datetime(2023, 5, 5, tzinfo=timezone.utc),
        datetime(2022, 3, 3, tzinfo=timezone.utc),
    ]
    for date in dates:
        metadata.create_photo(project.id, ASSET, date)

    newest = [p.original_date.year for p in metadata.list_photos(project.id, PhotoOrder.NEWEST_FIRST)]
    oldest = [p.original_date.year for p in metadata.list_photos(project.id, PhotoOrder.OLDEST_FIRST)]

    assert newest == [2023, 2022, 2021]
    assert oldest == [2021, 2022, 2023]


def test_list_photos_breaks_ties_by_id(metadata):
    project = metadata.create_project("Burst")
    moment = datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)
    ids = [metadata.create_photo(project.id, ASSET, moment).id for _ in range(3)]
    later = metadata.create_photo(project.id, ASSET, moment + timedelta(seconds=1))

    newest = [p.id for p in metadata.list_photos(project.id, PhotoOrder.NEWEST_FIRST)]
    oldest = [p.id for p in metadata.list_photos(project.id, PhotoOrder.OLDEST_FIRST)]

    assert newest == [later.id] + ids
    assert oldest == ids + [later.id]


def test_delete_project_cascades_to_photos(metadata):
    project = metadata.create_project("Trip")
    photo = metadata.create_photo(project.id, ASSET, datetime(2024, 1, 1, tzinfo=timezone.utc))

    metadata.delete_project(project.id)

    with pytest.raises(NotFoundError):
        metadata.get_photo(photo.id)
    with pytest.raises(NotFoundError):
        metadata.list_photos(project.id)
    assert metadata.count_asset_references(ASSET) == 0


def test_count_asset_references(metadata):
    project = metadata.create_project("Trip")
    date = datetime(2024, 1, 1, tzinfo=timezone.utc)
    first = metadata.create_photo(project.id, ASSET, date)
    metadata.create_photo(project.id, ASSET, date)

    assert metadata.count_asset_references(ASSET) == 2
    metadata.delete_photo(first.id)
    assert metadata.count_asset_references(ASSET) == 1
