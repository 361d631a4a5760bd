"""Profile photo storage.

Uploads are first written to a temporary file. If Cloudinary is configured
the file is uploaded there; otherwise (or if that upload fails) it is moved
into the local uploads directory served at /uploads. The temporary file is
removed on every exit path.
"""

import os
import logging
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import BinaryIO, Optional
import cloudinary
import cloudinary.uploader
from dotenv import load_dotenv

from aurora.errors import BadRequestError

load_dotenv()

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
CLOUDINARY_FOLDER = "profile_pictures"
LOCAL_URL_PREFIX = "/uploads"
_CHUNK_SIZE = 64 * 1024


def validate_image_filename(filename: Optional[str]) -> str:
    """Return the lowercased extension of an allowed image filename.

    Raises:
        BadRequestError: If the extension is not an allowed image type
    """
    ext = Path(filename or "").suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise BadRequestError("Only image files (jpg, jpeg, png, gif, webp) are allowed!")
    return ext


class PhotoStorage:
    """Stores profile photos remotely (Cloudinary) with a local fallback."""

    def __init__(
        self,
        upload_dir: str,
        temp_dir: Optional[str] = None,
        use_cloudinary: bool = False,
        max_bytes: int = MAX_UPLOAD_BYTES,
    ):
        self.upload_dir = Path(upload_dir)
        self.temp_dir = Path(temp_dir or tempfile.gettempdir())
        self.use_cloudinary = use_cloudinary
        self.max_bytes = max_bytes

    @classmethod
    def from_env(cls) -> "PhotoStorage":
        # The cloudinary SDK picks up CLOUDINARY_URL from the environment itself.
        use_cloudinary = bool(cloudinary.config().cloud_name)
        if not use_cloudinary:
            logger.debug("Cloudinary not configured; profile photos are stored locally")
        return cls(
            upload_dir=os.getenv("UPLOAD_DIR", "./public/uploads"),
            temp_dir=os.getenv("UPLOAD_TEMP_DIR") or None,
            use_cloudinary=use_cloudinary,
        )

    def _write_temp(self, source: BinaryIO, path: Path) -> None:
        written = 0
        with open(path, "wb") as out:
            while True:
                chunk = source.read(_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > self.max_bytes:
                    raise BadRequestError("Image exceeds the 5MB size limit.")
                out.write(chunk)
        if written == 0:
            raise BadRequestError("No image file uploaded")

    def _upload_remote(self, path: Path) -> Optional[str]:
        try:
            logger.debug(f"Attempting Cloudinary upload for {path.name}")
            result = cloudinary.uploader.upload(str(path), folder=CLOUDINARY_FOLDER)
            return result.get("secure_url")
        except Exception as e:
            logger.warning(f"Cloudinary upload failed, falling back to local storage: {type(e).__name__}: {str(e)}")
            return None

    def _store_local(self, path: Path, filename: str) -> str:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        shutil.move(str(path), str(self.upload_dir / filename))
        return f"{LOCAL_URL_PREFIX}/{filename}"

    def store(self, source: BinaryIO, original_filename: Optional[str]) -> str:
        """Store an uploaded image and return its public URL or server path.

        Raises:
            BadRequestError: On a disallowed extension, an empty file, or a file over the size limit
        """
        ext = validate_image_filename(original_filename)
        filename = f"profileImage-{uuid.uuid4().hex}{ext}"
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        temp_path = self.temp_dir / filename

        try:
            self._write_temp(source, temp_path)
            photo_url = self._upload_remote(temp_path) if self.use_cloudinary else None
            if not photo_url:
                photo_url = self._store_local(temp_path, filename)
                logger.info(f"Image saved locally: {photo_url}")
            else:
                logger.info(f"Image uploaded to Cloudinary: {photo_url}")
            return photo_url
        finally:
            self._cleanup(temp_path)

    @staticmethod
    def _cleanup(path: Path) -> None:
        try:
            if path.exists():
                path.unlink()
        except OSError as e:
            logger.error(f"Error deleting temp upload {path}: {e}")
