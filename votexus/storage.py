# votexus/storage.py
# Image handling: upload validation and the media stores behind it
import io
import logging
import os
from pathlib import Path
from typing import NamedTuple, Optional

import cloudinary
import cloudinary.uploader
from fastapi import UploadFile

from votexus import config
from votexus.errors import HttpError, MediaError

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class StoredImage(NamedTuple):
    url: str
    public_id: str


def read_image_upload(upload: Optional[UploadFile], missing_message: str) -> bytes:
    """
    Check an uploaded image and return its bytes.
    Raises 422 when the file is missing, of the wrong type or too large.
    """
    if upload is None or not upload.filename:
        raise HttpError(missing_message, 422)
    if upload.content_type not in config.ALLOWED_IMAGE_TYPES:
        raise HttpError("Only JPG, PNG or WEBP images allowed.", 422)
    data = upload.file.read(config.MAX_IMAGE_BYTES + 1)
    if len(data) > config.MAX_IMAGE_BYTES:
        raise HttpError("Image size must be less than 1MB.", 422)
    return data


class LocalMediaStore:
    """Keeps images under UPLOAD_DIR; they are served by the app at /uploads."""

    def __init__(self, root: str = config.UPLOAD_DIR, base_url: str = config.PUBLIC_BASE_URL):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url

    def upload(self, data: bytes, folder: str, public_id: str, content_type: str) -> StoredImage:
        relative = f"{folder}/{public_id}{EXTENSIONS.get(content_type, '.jpg')}"
        path = self.root / relative
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise MediaError(f"could not write {path}: {e}") from e
        return StoredImage(url=f"{self.base_url}/uploads/{relative}", public_id=relative)

    def destroy(self, public_id: str) -> None:
        path = self.root / public_id
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning(f"Image {public_id} already gone")
        except OSError as e:
            raise MediaError(f"could not remove {path}: {e}") from e


class CloudinaryMediaStore:
    """Cloudinary-backed store; credentials come from CLOUDINARY_URL."""

    def __init__(self):
        cloudinary.config(secure=True)

    def upload(self, data: bytes, folder: str, public_id: str, content_type: str) -> StoredImage:
        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(data),
                folder=folder,
                public_id=public_id,
                resource_type="image",
            )
        except Exception as e:
            raise MediaError(f"cloudinary upload failed: {e}") from e
        return StoredImage(url=result["secure_url"], public_id=result["public_id"])

    def destroy(self, public_id: str) -> None:
        try:
            cloudinary.uploader.destroy(public_id)
        except Exception as e:
            raise MediaError(f"cloudinary destroy failed: {e}") from e


_media_store = None


def get_media_store():
    """FastAPI dependency returning the configured media store."""
    global _media_store
    if _media_store is None:
        if config.MEDIA_BACKEND == "cloudinary":
            _media_store = CloudinaryMediaStore()
        else:
            _media_store = LocalMediaStore()
        logger.info(f"Media backend: {config.MEDIA_BACKEND}")
    return _media_store


def destroy_quietly(media, public_id: Optional[str]) -> None:
    """Best-effort delete: failures are logged and ignored."""
    if not public_id:
        return
    try:
        media.destroy(public_id)
    except MediaError as e:
        logger.error(f"Failed to delete image {public_id}: {e}")
