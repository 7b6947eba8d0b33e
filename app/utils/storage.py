import io
import logging
import os
import time
import uuid

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from app.config import settings
from app.utils.exceptions import ValidationException

logger = logging.getLogger(__name__)

# Declared MIME types accepted at the door; the stored type is re-checked from the bytes.
ALLOWED_IMAGE_TYPES = frozenset({"image/png", "image/jpeg", "image/gif", "image/webp"})

# Pillow format name → stored extension
IMAGE_FORMATS = {
    "PNG":  ".png",
    "JPEG": ".jpg",
    "GIF":  ".gif",
    "WEBP": ".webp",
}


def _unique_name(ext: str) -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}{ext}"


def detect_image_extension(content: bytes, filename: str | None = None) -> str:
    """
    Identify the image by its bytes, not by the client's filename or header.
    Returns the extension to store it under.
    """
    try:
        with Image.open(io.BytesIO(content)) as image:
            fmt = image.format
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        raise ValidationException(f"'{filename}' is not a valid image", field="images")

    ext = IMAGE_FORMATS.get(fmt)
    if ext is None:
        raise ValidationException(
            f"'{filename}' is a {fmt} image; only PNG, JPEG, GIF and WebP are accepted", field="images"
        )
    return ext


def validate_images(files: list[UploadFile], existing_count: int = 0) -> None:
    """Enforce the per-request image limit and the declared MIME allow-list."""
    if existing_count + len(files) > settings.MAX_IMAGES_PER_REQUEST:
        raise ValidationException(
            f"A request can hold at most {settings.MAX_IMAGES_PER_REQUEST} images", field="images"
        )
    for f in files:
        if (f.content_type or "").lower() not in ALLOWED_IMAGE_TYPES:
            raise ValidationException(f"'{f.filename}' is not an image. Only images can be uploaded.",
                                      field="images")


def read_limited(f: UploadFile) -> bytes:
    """Read at most one byte past the size limit so oversized uploads never load whole."""
    content = f.file.read(settings.max_image_size_bytes + 1)
    if len(content) > settings.max_image_size_bytes:
        raise ValidationException(
            f"'{f.filename}' exceeds the {settings.MAX_IMAGE_SIZE_MB} MB limit", field="images"
        )
    return content


def save_images(files: list[UploadFile], existing_count: int = 0) -> list[str]:
    """
    Persist uploaded images under UPLOAD_DIR.
    Returns the stored filenames, in upload order, for the request's `images` list.
    Nothing is written unless every file passes validation.
    """
    validate_images(files, existing_count)

    payloads = []
    for f in files:
        content = read_limited(f)
        payloads.append((_unique_name(detect_image_extension(content, f.filename)), content))

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    stored = []
    for name, content in payloads:
        with open(os.path.join(settings.UPLOAD_DIR, name), "wb") as out:
            out.write(content)
        stored.append(name)
    logger.info(f"Stored {len(stored)} image(s) in {settings.UPLOAD_DIR}")
    return stored
