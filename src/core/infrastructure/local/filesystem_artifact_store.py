"""Local filesystem implementation of ArtifactStoreRepository."""

from collections.abc import Mapping
import json
from pathlib import Path
import shutil

from aws_lambda_powertools import Logger
from pydantic import ValidationError as PydanticValidationError

from core.models.errors import NotFoundError, StorageError
from core.models.image import ImageMetadata
from core.repositories.artifact_repository import ArtifactStoreRepository
from core.utils.constants import (
    ERROR_CODE_ARTIFACT_READ_FAILED,
    ERROR_CODE_ARTIFACT_WRITE_FAILED,
    METADATA_NAMESPACE,
    ORIGINALS_NAMESPACE,
    OUTPUT_EXTENSION,
    RESIZED_NAMESPACE,
)

logger = Logger(UTC=True)


class LocalArtifactStore(ArtifactStoreRepository):
    """Artifact storage rooted at a directory on the local filesystem.

    Layout::

        <root>/originals/<id>.webp
        <root>/resized/<id>/<size>.webp
        <root>/metadata/<id>.json
    """

    def __init__(self, root: str | Path) -> None:
        """Create the store, making the namespace directories if absent."""
        self._root = Path(root)
        self._originals = self._root / ORIGINALS_NAMESPACE
        self._resized = self._root / RESIZED_NAMESPACE
        self._metadata = self._root / METADATA_NAMESPACE

        for directory in (self._originals, self._resized, self._metadata):
            self._ensure_directory(directory)

    @property
    def root(self) -> Path:
        return self._root

    def store_original(self, *, data: bytes, image_id: str) -> None:
        path = self._originals / f"{image_id}.{OUTPUT_EXTENSION}"
        self._write(path, data, image_id=image_id)

    def store_resized_set(self, *, variants: Mapping[str, bytes], image_id: str) -> None:
        directory = self._resized / image_id
        self._ensure_directory(directory)

        for size, data in variants.items():
            self._write(Path(self.resolve_path(image_id, size)), data, image_id=image_id)

    def store_metadata(self, *, metadata: ImageMetadata, image_id: str) -> None:
        path = self._metadata_path(image_id)
        payload = json.dumps(metadata.to_record()).encode("utf-8")
        self._write(path, payload, image_id=image_id)

    def resolve_path(self, image_id: str, size: str) -> str:
        return str(self._resized / image_id / f"{size}.{OUTPUT_EXTENSION}")

    def get_metadata(self, image_id: str) -> ImageMetadata | None:
        path = self._metadata_path(image_id)

        logger.debug("Checking metadata path", extra={"path": str(path)})

        if not path.is_file():
            logger.warning("Metadata file not found", extra={"path": str(path)})
            return None

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError:
            logger.exception("Error reading metadata file", extra={"path": str(path)})
            return None
        except UnicodeDecodeError:
            logger.error("Metadata file is not valid UTF-8", extra={"path": str(path)})
            return None

        if not raw.strip():
            logger.warning("Empty metadata file found", extra={"path": str(path)})
            return None

        try:
            return ImageMetadata.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError):
            logger.error("Failed to deserialize metadata", extra={"path": str(path)})
            return None

    def read_artifact(self, location: str) -> bytes:
        path = Path(location)

        try:
            return path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise NotFoundError(
                message="Image not found",
                details={"path": location},
            ) from exc
        except OSError as exc:
            logger.exception("Error reading artifact", extra={"path": location})
            raise StorageError(
                message="Unable to read image at this time",
                error_code=ERROR_CODE_ARTIFACT_READ_FAILED,
                details={"path": location},
            ) from exc

    def discard(self, image_id: str) -> None:
        logger.debug("Discarding artifacts", extra={"image_id": image_id})

        try:
            (self._originals / f"{image_id}.{OUTPUT_EXTENSION}").unlink(missing_ok=True)
            self._metadata_path(image_id).unlink(missing_ok=True)

            variants_dir = self._resized / image_id
            if variants_dir.exists():
                shutil.rmtree(variants_dir)
        except OSError as exc:
            logger.exception("Error discarding artifacts", extra={"image_id": image_id})
            raise StorageError(
                message="Unable to remove image artifacts",
                details={"image_id": image_id},
            ) from exc

    def _metadata_path(self, image_id: str) -> Path:
        return self._metadata / f"{image_id}.json"

    @staticmethod
    def _write(path: Path, data: bytes, *, image_id: str) -> None:
        try:
            path.write_bytes(data)
        except OSError as exc:
            logger.exception("Error writing artifact", extra={"path": str(path)})
            raise StorageError(
                message="Unable to store image at this time",
                error_code=ERROR_CODE_ARTIFACT_WRITE_FAILED,
                details={"image_id": image_id},
            ) from exc

        logger.debug("Artifact written", extra={"path": str(path), "size": len(data)})

    @staticmethod
    def _ensure_directory(path: Path) -> None:
        if path.is_dir():
            return

        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.exception("Unable to create storage directory", extra={"path": str(path)})
            raise StorageError(
                message="Unable to prepare image storage",
                details={"path": str(path)},
            ) from exc

        logger.info("Created directory", extra={"path": str(path)})
