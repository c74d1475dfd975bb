# tests/conftest.py
import io
import os
from datetime import datetime, timezone

# Keep test runs from writing log files into the working directory
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest
from fastapi.testclient import TestClient
from PIL import ExifTags, Image

from chronicle.main import create_app
from chronicle.services import LibraryService, RestoreCoordinator
from chronicle.storage import Store


def make_image(color=(200, 30, 30), size=(32, 24), format="JPEG", taken_at: str | None = None,
               taken_original: str | None = None) -> bytes:
    """Encode a solid-color image; different colors give different bytes.

    taken_at sets the EXIF DateTime tag, taken_original sets DateTimeOriginal
    inside the Exif IFD.
    """
    image = Image.new("RGB", size, color=color)
    buf = io.BytesIO()
    if taken_at is not None or taken_original is not None:
        exif = Image.Exif()
        if taken_at is not None:
            exif[ExifTags.Base.DateTime] = taken_at
        if taken_original is not None:
            exif[ExifTags.IFD.Exif] = {ExifTags.Base.DateTimeOriginal: taken_original}
        image.save(buf, format=format, exif=exif)
    else:
        image.save(buf, format=format)
    return buf.getvalue()


@pytest.fixture
def image_bytes():
    """Factory for real image content"""
    return make_image


@pytest.fixture
def temp_storage_dir(tmp_path):
    """Create temporary storage directory for a test"""
    storage = tmp_path / "storage"
    storage.mkdir()
    return storage


@pytest.fixture
def store(temp_storage_dir):
    """An opened store on an empty storage directory"""
    store = Store(temp_storage_dir, retry_after=3)
    store.open()
    yield store
    store.close()


@pytest.fixture
def coordinator(store):
    return RestoreCoordinator(store)


@pytest.fixture
def library(store, coordinator):
    return LibraryService(store, coordinator)


@pytest.fixture
def client(store):
    """Test client over the test store"""
    app = create_app(store=store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_project(library):
    """Create a sample project"""
    return library.create_project("Test Project", "Test Description")


@pytest.fixture
def sample_photo(library, sample_project):
    """Create a sample photo in the sample project"""
    return library.add_photo(
        sample_project.id,
        make_image(),
        original_date=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        caption="First light"
    )
