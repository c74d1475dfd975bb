# tests/utils/test_images.py
from datetime import datetime

import pytest

from chronicle.errors import ValidationError
from chronicle.utils.images import inspect_image


def test_inspect_jpeg(image_bytes):
    info = inspect_image(image_bytes(size=(40, 30)))

    assert info.content_type == "image/jpeg"
    assert (info.width, info.height) == (40, 30)
    assert info.taken_at is None


def test_inspect_reads_exif_date(image_bytes):
    info = inspect_image(image_bytes(taken_at="2020:02:29 23:59:58"))

    assert info.taken_at == datetime(2020, 2, 29, 23, 59, 58)


def test_inspect_ignores_malformed_exif_date(image_bytes):
    info = inspect_image(image_bytes(taken_at="sometime in spring"))

    assert info.taken_at is None


def test_inspect_rejects_non_images():
    with pytest.raises(ValidationError):
        inspect_image(b"\x00\x01\x02 definitely not an image")


def test_inspect_prefers_original_capture_date(image_bytes):
    info = inspect_image(image_bytes(taken_at="2023:06:01 08:00:00", taken_original="2019:12:31 18:45:00"))

    assert info.taken_at == datetime(2019, 12, 31, 18, 45, 0)
