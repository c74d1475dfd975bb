# backend/chronicle/utils/images.py
import io
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from PIL import ExifTags, Image, UnidentifiedImageError

from ..errors import ValidationError

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"


@dataclass(frozen=True)
class ImageInfo:
    content_type: str
    width: int
    height: int
    taken_at: Optional[datetime] = None


def _parse_exif_date(value) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip().rstrip("\x00"), EXIF_DATE_FORMAT)
    except ValueError:
        return None


def inspect_image(content: bytes) -> ImageInfo:
    """Identify uploaded image bytes and read the capture time from EXIF"""
    try:
        with Image.open(io.BytesIO(content)) as image:
            image_format = image.format
            width, height = image.size
            exif = image.getexif()
            taken_at = _parse_exif_date(
                exif.get_ifd(ExifTags.IFD.Exif).get(ExifTags.Base.DateTimeOriginal)
            ) or _parse_exif_date(exif.get(ExifTags.Base.DateTime))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
        raise ValidationError(f"Content is not a readable image: {e}") from e

    return ImageInfo(
        content_type=Image.MIME.get(image_format, "application/octet-stream"),
        width=width,
        height=height,
        taken_at=taken_at,
    )
