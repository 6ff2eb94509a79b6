"""
Tests for the local image blob store.
"""

import pytest

from property_exchange.services.blob_store import LocalBlobStore
from property_exchange.utils.exceptions import (
    FileSizeExceededError,
    UnsupportedFileTypeError,
    ValidationError,
)
from tests.conftest import make_image_bytes


class TestValidation:

    @pytest.mark.parametrize("fmt,extension", [("PNG", ".png"), ("JPEG", ".jpg"), ("WEBP", ".webp")])
    def test_accepted_formats(self, blob_store: LocalBlobStore, fmt, extension):
        assert blob_store.validate_image(make_image_bytes(fmt)) == extension

    def test_empty_payload(self, blob_store: LocalBlobStore):
        with pytest.raises(ValidationError, match="empty"):
            blob_store.validate_image(b"")

    def test_not_an_image(self, blob_store: LocalBlobStore):
        with pytest.raises(ValidationError, match="Invalid image"):
            blob_store.validate_image(b"definitely not an image")

    def test_unsupported_format(self, blob_store: LocalBlobStore):
        with pytest.raises(UnsupportedFileTypeError):
            blob_store.validate_image(make_image_bytes("GIF"))

    def test_size_limit(self, tmp_path):
        store = LocalBlobStore(base_dir=tmp_path, max_size=16)

        with pytest.raises(FileSizeExceededError):
            store.validate_image(make_image_bytes())


class TestStorage:

    async def test_store_and_delete(self, blob_store: LocalBlobStore):
        content = make_image_bytes()

        ref = await blob_store.store(content, "house.png")

        assert ref.startswith("listings/")
        assert ref.endswith(".png")
        assert await blob_store.exists(ref)
        assert (blob_store.base_dir / ref).read_bytes() == content

        assert await blob_store.delete(ref) is True
        assert not await blob_store.exists(ref)

    async def test_delete_is_idempotent(self, blob_store: LocalBlobStore):
        ref = await blob_store.store(make_image_bytes())

        assert await blob_store.delete(ref) is True
        assert await blob_store.delete(ref) is False

    async def test_invalid_payload_is_not_written(self, blob_store: LocalBlobStore):
        with pytest.raises(ValidationError):
            await blob_store.store(b"garbage")

        assert not (blob_store.base_dir / "listings").exists() or not any((blob_store.base_dir / "listings").iterdir())

    async def test_refs_cannot_escape_root(self, blob_store: LocalBlobStore):
        with pytest.raises(ValidationError):
            await blob_store.delete("../outside.png")

    def test_url(self, blob_store: LocalBlobStore):
        assert blob_store.url("listings/a.png") == "/media/listings/a.png"
        assert blob_store.url(None) is None
