from __future__ import annotations
import io
from PIL import Image, UnidentifiedImageError


ALLOWED_MIME = {"image/jpeg", "image/png", "image/gif"}
EXT_FOR_MIME = {"image/jpeg": "jpg", "image/png": "png", "image/gif": "gif"}
_FORMAT_MIME = {"JPEG": "image/jpeg", "PNG": "image/png", "GIF": "image/gif"}


class InvalidUpload(ValueError):
    pass


def sniff_mime(data: bytes) -> str | None:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return _FORMAT_MIME.get(img.format)
    except (UnidentifiedImageError, OSError):
        return None


def validate_image(data: bytes, max_bytes: int) -> str:
    """
    Size and type pre-check for uploads. Returns the sniffed mime type.
    The declared content type of the upload is ignored; only the bytes count.
    """
    if not data:
        raise InvalidUpload("Empty file")
    if len(data) > max_bytes:
        raise InvalidUpload(f"File must not exceed {max_bytes // (1024 * 1024)}MB")
    mime = sniff_mime(data)
    if mime not in ALLOWED_MIME:
        raise InvalidUpload("Unsupported file format. Use JPG, PNG or GIF")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()  # basic integrity
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise InvalidUpload("Invalid image file") from e
    return mime


def ext_for_mime(mime: str) -> str:
    return EXT_FOR_MIME.get(mime, "bin")
