"""Tests for profile photo storage."""

import io
import pytest
from unittest.mock import patch

from aurora.errors import BadRequestError
from aurora.integrations.photo_storage import PhotoStorage, validate_image_filename

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _temp_files(storage: PhotoStorage):
    return list(storage.temp_dir.iterdir()) if storage.temp_dir.exists() else []


class TestValidateImageFilename:
    """Test validate_image_filename()."""

    @pytest.mark.parametrize("name", ["me.jpg", "me.JPEG", "a.png", "b.gif", "c.webp"])
    def test_allowed_extensions(self, name):
        assert validate_image_filename(name).startswith(".")

    @pytest.mark.parametrize("name", ["notes.txt", "script.png.exe", "noextension", None])
    def test_rejected_extensions(self, name):
        with pytest.raises(BadRequestError):
            validate_image_filename(name)


class TestPhotoStorage:
    """Test PhotoStorage.store()."""

    def test_local_store_moves_file_into_upload_dir(self, photo_storage):
        url = photo_storage.store(io.BytesIO(PNG_BYTES), "avatar.PNG")

        assert url.startswith("/uploads/profileImage-")
        assert url.endswith(".png")
        stored = photo_storage.upload_dir / url.rsplit("/", 1)[-1]
        assert stored.read_bytes() == PNG_BYTES
        assert _temp_files(photo_storage) == []

    def test_bad_extension_stores_nothing(self, photo_storage):
        with pytest.raises(BadRequestError):
            photo_storage.store(io.BytesIO(b"hello"), "notes.txt")
        assert not photo_storage.upload_dir.exists() or list(photo_storage.upload_dir.iterdir()) == []

    def test_oversized_upload_is_rejected_and_temp_removed(self, tmp_path):
        storage = PhotoStorage(upload_dir=str(tmp_path / "uploads"), temp_dir=str(tmp_path / "tmp"), max_bytes=10)

        with pytest.raises(BadRequestError) as exc_info:
            storage.store(io.BytesIO(b"x" * 11), "big.jpg")

        assert "size limit" in exc_info.value.message
        assert _temp_files(storage) == []

    def test_empty_upload_is_rejected(self, photo_storage):
        with pytest.raises(BadRequestError):
            photo_storage.store(io.BytesIO(b""), "empty.png")
        assert _temp_files(photo_storage) == []

    def test_cloudinary_url_is_returned_when_configured(self, tmp_path):
        storage = PhotoStorage(upload_dir=str(tmp_path / "uploads"), temp_dir=str(tmp_path / "tmp"), use_cloudinary=True)
        remote = {"secure_url": "https://res.cloudinary.com/demo/image/upload/profile_pictures/x.png"}

        with patch("aurora.integrations.photo_storage.cloudinary.uploader.upload", return_value=remote) as upload:
            url = storage.store(io.BytesIO(PNG_BYTES), "avatar.png")

        assert url == remote["secure_url"]
        assert upload.call_args.kwargs["folder"] == "profile_pictures"
        assert _temp_files(storage) == []
        assert not storage.upload_dir.exists()

    def test_cloudinary_failure_falls_back_to_local(self, tmp_path):
        storage = PhotoStorage(upload_dir=str(tmp_path / "uploads"), temp_dir=str(tmp_path / "tmp"), use_cloudinary=True)

        with patch(
            "aurora.integrations.photo_storage.cloudinary.uploader.upload",
            side_effect=RuntimeError("cloudinary down"),
        ):
            url = storage.store(io.BytesIO(PNG_BYTES), "avatar.png")

        assert url.startswith("/uploads/profileImage-")
        assert (storage.upload_dir / url.rsplit("/", 1)[-1]).exists()
        assert _temp_files(storage) == []
