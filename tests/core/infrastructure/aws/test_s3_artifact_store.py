import json
from collections.abc import Mapping
from io import BytesIO
from typing import Any

import pytest
from botocore.exceptions import ClientError

from core.infrastructure.adapters.s3_adapter import S3Adapter
from core.infrastructure.aws.s3_artifact_store import S3ArtifactStore
from core.models.errors import NotFoundError, StorageError
from core.models.image import GeoLocation, ImageMetadata


def _client_error(code: str, operation: str = "GetObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class DummyS3Adapter:
    """In-memory stand-in for S3Adapter."""

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.deleted: list[str] = []
        self.fail_put_on: str | None = None
        self.get_error: Exception | None = None

    @property
    def bucket(self) -> str:
        return "dummy"

    def put_object(self, *, key: str, body: bytes, content_type: str) -> None:
        if self.fail_put_on and self.fail_put_on in key:
            raise _client_error("InternalError", "PutObject")
        self.objects[key] = (body, content_type)

    def get_object(self, *, key: str) -> Mapping[str, Any]:
        if self.get_error is not None:
            raise self.get_error
        if key not in self.objects:
            raise _client_error("NoSuchKey")
        return {"Body": BytesIO(self.objects[key][0])}

    def delete_object(self, *, key: str) -> None:
        self.deleted.append(key)
        self.objects.pop(key, None)

    def list_keys(self, *, prefix: str) -> list[str]:
        return [key for key in self.objects if key.startswith(prefix)]


@pytest.fixture
def adapter() -> DummyS3Adapter:
    return DummyS3Adapter()


@pytest.fixture
def store(adapter) -> S3ArtifactStore:
    return S3ArtifactStore(adapter, prefix="ingest")


class TestS3ArtifactStore:
    def test_store_original(self, store, adapter) -> None:
        store.store_original(data=b"original", image_id="img-1")

        assert adapter.objects["ingest/originals/img-1.webp"] == (b"original", "image/webp")

    def test_store_resized_set(self, store, adapter) -> None:
        store.store_resized_set(variants={"phone": b"p", "desktop": b"d"}, image_id="img-1")

        assert adapter.objects["ingest/resized/img-1/phone.webp"][0] == b"p"
        assert adapter.objects["ingest/resized/img-1/desktop.webp"][0] == b"d"

    def test_store_metadata(self, store, adapter) -> None:
        store.store_metadata(metadata=ImageMetadata(camera_make="Canon"), image_id="img-1")

        body, content_type = adapter.objects["ingest/metadata/img-1.json"]
        assert content_type == "application/json"
        assert json.loads(body)["cameraMake"] == "Canon"

    def test_prefix_is_optional(self, adapter) -> None:
        store = S3ArtifactStore(adapter)

        assert store.resolve_path("img-1", "phone") == "resized/img-1/phone.webp"

    def test_prefix_slashes_normalized(self, adapter) -> None:
        store = S3ArtifactStore(adapter, prefix="/a/b/")

        assert store.resolve_path("img-1", "tablet") == "a/b/resized/img-1/tablet.webp"

    def test_resolve_path_does_not_touch_bucket(self, store, adapter) -> None:
        adapter.get_error = RuntimeError("must not be called")

        assert store.resolve_path("img-1", "phone") == store.resolve_path("img-1", "phone")

    def test_metadata_round_trip(self, store) -> None:
        metadata = ImageMetadata(
            camera_make="Nikon",
            camera_model="D850",
            geo_location=GeoLocation(latitude=35.6586, longitude=139.7454),
        )

        store.store_metadata(metadata=metadata, image_id="img-1")

        assert store.get_metadata("img-1") == metadata

    def test_unknown_metadata_is_absent(self, store) -> None:
        assert store.get_metadata("missing") is None

    @pytest.mark.parametrize("body", [b"", b"  ", b"{broken", b"\xff\xfe"])
    def test_unusable_metadata_is_absent(self, store, adapter, body) -> None:
        adapter.objects["ingest/metadata/img-1.json"] = (body, "application/json")

        assert store.get_metadata("img-1") is None

    def test_metadata_read_error_is_absent(self, store, adapter) -> None:
        adapter.get_error = _client_error("AccessDenied")

        assert store.get_metadata("img-1") is None

    def test_read_artifact(self, store) -> None:
        store.store_resized_set(variants={"phone": b"p"}, image_id="img-1")

        assert store.read_artifact(store.resolve_path("img-1", "phone")) == b"p"

    def test_read_missing_artifact(self, store) -> None:
        with pytest.raises(NotFoundError):
            store.read_artifact(store.resolve_path("img-1", "phone"))

    def test_read_failure_raises_storage_error(self, store, adapter) -> None:
        adapter.get_error = _client_error("InternalError")

        with pytest.raises(StorageError) as exc:
            store.read_artifact("ingest/resized/img-1/phone.webp")

        assert exc.value.error_code == "ARTIFACT_READ_FAILED"

    def test_write_failure_raises_storage_error(self, store, adapter) -> None:
        adapter.fail_put_on = "metadata"

        with pytest.raises(StorageError) as exc:
            store.store_metadata(metadata=ImageMetadata(), image_id="img-1")

        assert exc.value.error_code == "ARTIFACT_WRITE_FAILED"

    def test_discard_deletes_all_keys(self, store, adapter) -> None:
        store.store_original(data=b"o", image_id="img-1")
        store.store_resized_set(
            variants={"phone": b"p", "tablet": b"t", "desktop": b"d"},
            image_id="img-1",
        )
        store.store_metadata(metadata=ImageMetadata(), image_id="img-1")

        store.discard("img-1")

        assert adapter.objects == {}
        assert "ingest/originals/img-1.webp" in adapter.deleted
        assert "ingest/metadata/img-1.json" in adapter.deleted

    def test_discard_removes_custom_variants(self, store, adapter) -> None:
        store.store_resized_set(variants={"square": b"s", "phone": b"p"}, image_id="img-1")
        store.store_resized_set(variants={"square": b"x"}, image_id="img-10")

        store.discard("img-1")

        assert "ingest/resized/img-1/square.webp" in adapter.deleted
        assert list(adapter.objects) == ["ingest/resized/img-10/square.webp"]

    def test_discard_failure_raises_storage_error(self, store, adapter, monkeypatch) -> None:
        def fail(**_):
            raise _client_error("AccessDenied", "ListObjectsV2")

        monkeypatch.setattr(adapter, "list_keys", fail)

        with pytest.raises(StorageError):
            store.discard("img-1")


class TestS3ArtifactStoreWithMoto:
    def test_full_artifact_set(self, s3_bucket, s3_get_object) -> None:
        store = S3ArtifactStore(S3Adapter(s3_bucket), prefix="images")

        store.store_original(data=b"original", image_id="img-1")
        store.store_resized_set(variants={"phone": b"phone"}, image_id="img-1")
        store.store_metadata(metadata=ImageMetadata(camera_model="GR III"), image_id="img-1")

        assert s3_get_object("images/originals/img-1.webp") == b"original"
        assert store.read_artifact(store.resolve_path("img-1", "phone")) == b"phone"
        assert store.get_metadata("img-1") == ImageMetadata(camera_model="GR III")

    def test_missing_object_is_not_found(self, s3_bucket) -> None:
        store = S3ArtifactStore(S3Adapter(s3_bucket))

        with pytest.raises(NotFoundError):
            store.read_artifact(store.resolve_path("nope", "phone"))

        assert store.get_metadata("nope") is None

    def test_discard_lists_variants(self, s3_bucket, s3_client) -> None:
        store = S3ArtifactStore(S3Adapter(s3_bucket), prefix="images")

        store.store_original(data=b"original", image_id="img-1")
        store.store_resized_set(variants={"square": b"s", "desktop": b"d"}, image_id="img-1")

        store.discard("img-1")

        listing = s3_client.list_objects_v2(Bucket=s3_bucket, Prefix="images/")
        assert listing["KeyCount"] == 0
