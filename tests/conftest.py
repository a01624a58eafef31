"""
Pytest configuration and fixtures for image-ingestion tests.
Provides environment isolation, AWS mocking, S3 fixtures and generated images.
"""

import os
from collections.abc import Callable
from io import BytesIO
from typing import Any

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws
from PIL import ExifTags, Image

from core.infrastructure.local.filesystem_artifact_store import LocalArtifactStore
from core.infrastructure.storage_factory import get_artifact_store

os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "1")

TEST_BUCKET = "image-ingestion-test"


@pytest.fixture(autouse=True)
def service_env(monkeypatch, tmp_path):
    """Point the service at a throwaway storage root and fake AWS credentials."""
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("IMAGE_STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)
    monkeypatch.delenv("WEBP_QUALITY", raising=False)
    monkeypatch.delenv("WEBP_LOSSLESS", raising=False)

    get_artifact_store.cache_clear()
    yield
    get_artifact_store.cache_clear()


@pytest.fixture(scope="function")
def aws_mock():
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def s3_client(aws_mock):
    """S3 client for bucket operations."""
    return boto3.client("s3", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def s3_bucket(s3_client) -> str:
    """Create the test bucket inside the moto context and return its name."""
    try:
        s3_client.create_bucket(Bucket=TEST_BUCKET)
    except ClientError as e:
        if e.response["Error"]["Code"] != "BucketAlreadyOwnedByYou":
            raise

    return TEST_BUCKET


@pytest.fixture
def s3_get_object(s3_client, s3_bucket) -> Callable[[str], bytes]:
    """
    Helper to get an object from S3.

    Usage:
        content = s3_get_object("originals/img.webp")
    """

    def _get(key: str) -> bytes:
        response: dict[str, Any] = s3_client.get_object(Bucket=s3_bucket, Key=key)
        data: bytes = response["Body"].read()
        return data

    return _get


@pytest.fixture
def s3_put_object(s3_client, s3_bucket) -> Callable[..., None]:
    """
    Helper to upload an object to S3.

    Usage:
        s3_put_object("metadata/img.json", b"{}", "application/json")
    """

    def _put(key: str, body: bytes, content_type: str = "application/octet-stream") -> None:
        s3_client.put_object(Bucket=s3_bucket, Key=key, Body=body, ContentType=content_type)

    return _put


@pytest.fixture
def local_store(tmp_path) -> LocalArtifactStore:
    return LocalArtifactStore(tmp_path / "artifacts")


def _encode(image: Image.Image, fmt: str, **params: Any) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def _camera_exif(
    *,
    make: str | None = "Canon",
    model: str | None = "EOS 5D Mark IV",
    gps: dict[int, Any] | None = None,
    orientation: int | None = None,
) -> Image.Exif:
    exif = Image.Exif()
    if make is not None:
        exif[ExifTags.Base.Make] = make
    if model is not None:
        exif[ExifTags.Base.Model] = model
    if orientation is not None:
        exif[ExifTags.Base.Orientation] = orientation
    if gps is not None:
        exif[ExifTags.IFD.GPSInfo] = gps
    return exif


# 40°26'46" N, 79°58'56" W
PITTSBURGH_GPS = {
    ExifTags.GPS.GPSLatitudeRef: "N",
    ExifTags.GPS.GPSLatitude: (40.0, 26.0, 46.0),
    ExifTags.GPS.GPSLongitudeRef: "W",
    ExifTags.GPS.GPSLongitude: (79.0, 58.0, 56.0),
}


@pytest.fixture
def make_image() -> Callable[..., Image.Image]:
    """Factory for in-memory Pillow images."""

    def _make(
        size: tuple[int, int] = (320, 240),
        mode: str = "RGB",
        color: Any = (200, 30, 60),
    ) -> Image.Image:
        return Image.new(mode, size, color)

    return _make


@pytest.fixture
def jpeg_bytes(make_image) -> Callable[..., bytes]:
    """Factory for JPEG bytes, optionally carrying an EXIF profile."""

    def _jpeg(size: tuple[int, int] = (320, 240), *, exif: Image.Exif | None = None) -> bytes:
        params: dict[str, Any] = {"quality": 85}
        if exif is not None:
            params["exif"] = exif.tobytes()
        return _encode(make_image(size), "JPEG", **params)

    return _jpeg


@pytest.fixture
def camera_jpeg(jpeg_bytes) -> bytes:
    """JPEG with camera make/model and GPS coordinates."""
    return jpeg_bytes(exif=_camera_exif(gps=dict(PITTSBURGH_GPS)))


@pytest.fixture
def camera_exif() -> Callable[..., Image.Exif]:
    return _camera_exif


@pytest.fixture
def png_bytes(make_image) -> bytes:
    """Semi-transparent PNG."""
    return _encode(make_image((200, 100), mode="RGBA", color=(0, 128, 255, 128)), "PNG")


@pytest.fixture
def webp_bytes(make_image) -> bytes:
    return _encode(make_image((150, 150)), "WEBP")
