"""S3-backed implementation of ArtifactStoreRepository."""

from collections.abc import Mapping
import json

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError
from pydantic import ValidationError as PydanticValidationError

from core.infrastructure.adapters.s3_adapter import S3AdapterProtocol
from core.models.errors import NotFoundError, StorageError
from core.models.image import ImageMetadata
from core.repositories.artifact_repository import ArtifactStoreRepository
from core.utils.constants import (
    ERROR_CODE_ARTIFACT_READ_FAILED,
    ERROR_CODE_ARTIFACT_WRITE_FAILED,
    METADATA_NAMESPACE,
    ORIGINALS_NAMESPACE,
    OUTPUT_EXTENSION,
    OUTPUT_MIME_TYPE,
    RESIZED_NAMESPACE,
)

logger = Logger(UTC=True)

_MISSING_KEY_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


def _is_missing_key(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") in _MISSING_KEY_CODES


class S3ArtifactStore(ArtifactStoreRepository):
    """Artifact storage in a single S3 bucket, optionally under a key prefix."""

    def __init__(self, adapter: S3AdapterProtocol, *, prefix: str = "") -> None:
        """Create storage using the provided S3 adapter."""
        self._s3 = adapter
        self._prefix = f"{prefix.strip('/')}/" if prefix.strip("/") else ""

    def store_original(self, *, data: bytes, image_id: str) -> None:
        key = self._key(ORIGINALS_NAMESPACE, f"{image_id}.{OUTPUT_EXTENSION}")
        self._put(key, data, content_type=OUTPUT_MIME_TYPE, image_id=image_id)

    def store_resized_set(self, *, variants: Mapping[str, bytes], image_id: str) -> None:
        for size, data in variants.items():
            self._put(
                self.resolve_path(image_id, size),
                data,
                content_type=OUTPUT_MIME_TYPE,
                image_id=image_id,
            )

    def store_metadata(self, *, metadata: ImageMetadata, image_id: str) -> None:
        payload = json.dumps(metadata.to_record()).encode("utf-8")
        self._put(
            self._metadata_key(image_id),
            payload,
            content_type="application/json",
            image_id=image_id,
        )

    def resolve_path(self, image_id: str, size: str) -> str:
        return self._key(RESIZED_NAMESPACE, image_id, f"{size}.{OUTPUT_EXTENSION}")

    def get_metadata(self, image_id: str) -> ImageMetadata | None:
        key = self._metadata_key(image_id)
        logger.debug("Fetching metadata", extra={"key": key})

        try:
            raw = self._s3.get_object(key=key)["Body"].read()
        except ClientError as exc:
            if _is_missing_key(exc):
                logger.warning("Metadata object not found", extra={"key": key})
            else:
                logger.error("S3 metadata read failed", extra={"key": key})
            return None
        except Exception:
            logger.exception("Unexpected error reading metadata", extra={"key": key})
            return None

        if not raw or not raw.strip():
            logger.warning("Empty metadata object found", extra={"key": key})
            return None

        try:
            return ImageMetadata.model_validate(json.loads(raw))
        except (json.JSONDecodeError, UnicodeDecodeError, PydanticValidationError):
            logger.error("Failed to deserialize metadata", extra={"key": key})
            return None

    def read_artifact(self, location: str) -> bytes:
        logger.debug("Downloading artifact", extra={"key": location})

        try:
            response = self._s3.get_object(key=location)
            body: bytes = response["Body"].read()
            return body

        except ClientError as exc:
            if _is_missing_key(exc):
                raise NotFoundError(
                    message="Image not found",
                    details={"key": location},
                ) from exc

            logger.error("S3 download failed", extra={"key": location})
            raise StorageError(
                message="Unable to read image at this time",
                error_code=ERROR_CODE_ARTIFACT_READ_FAILED,
                details={"key": location},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error downloading artifact")
            raise StorageError(
                message="Unable to read image at this time",
                error_code=ERROR_CODE_ARTIFACT_READ_FAILED,
                details={"key": location},
            ) from exc

    def discard(self, image_id: str) -> None:
        # Variant names are whatever the transcoder produced, so list them
        variants_prefix = self._key(RESIZED_NAMESPACE, image_id) + "/"

        try:
            keys = [
                self._key(ORIGINALS_NAMESPACE, f"{image_id}.{OUTPUT_EXTENSION}"),
                *self._s3.list_keys(prefix=variants_prefix),
                self._metadata_key(image_id),
            ]

            logger.debug("Discarding artifacts", extra={"image_id": image_id, "keys": keys})

            for key in keys:
                self._s3.delete_object(key=key)
        except Exception as exc:
            logger.exception("S3 deletion failed", extra={"image_id": image_id})
            raise StorageError(
                message="Unable to remove image artifacts",
                details={"image_id": image_id},
            ) from exc

    def _put(self, key: str, data: bytes, *, content_type: str, image_id: str) -> None:
        logger.debug(
            "Uploading artifact",
            extra={"image_id": image_id, "key": key, "size": len(data)},
        )

        try:
            self._s3.put_object(key=key, body=data, content_type=content_type)
        except ClientError as exc:
            logger.error("S3 upload failed", extra={"key": key})
            raise StorageError(
                message="Unable to store image at this time",
                error_code=ERROR_CODE_ARTIFACT_WRITE_FAILED,
                details={"image_id": image_id},
            ) from exc
        except Exception as exc:
            logger.exception("Unexpected error uploading artifact")
            raise StorageError(
                message="Unable to store image at this time",
                error_code=ERROR_CODE_ARTIFACT_WRITE_FAILED,
                details={"image_id": image_id},
            ) from exc

    def _metadata_key(self, image_id: str) -> str:
        return self._key(METADATA_NAMESPACE, f"{image_id}.json")

    def _key(self, *parts: str) -> str:
        return self._prefix + "/".join(parts)
