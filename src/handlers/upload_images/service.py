"""Business logic for image ingestion.

This module validates an uploaded file, drives the transcoder to produce
the canonical original and its resized variants, and persists every
artifact through the artifact store. Failures never escape
``process_upload``; they are reported on the returned result.
"""

import asyncio
from io import BytesIO
from pathlib import Path
import uuid

from aws_lambda_powertools import Logger

from core.imaging.transcoder import ImageTranscoder
from core.infrastructure.storage_factory import get_artifact_store
from core.models.errors import (
    FileSizeError,
    MIMETypeError,
    StorageError,
    UnexpectedError,
    UnsupportedExtensionError,
    ValidationError,
)
from core.models.image import ImageProcessingResult
from core.models.upload import UploadedFile
from core.repositories.artifact_repository import ArtifactStoreRepository
from core.utils.constants import (
    ALLOWED_EXTENSIONS,
    ALLOWED_MIME_TYPES,
    MAX_FILE_SIZE,
    get_max_file_size_mb,
)

from .models import ImageUploadResult

logger = Logger(UTC=True)

PROCESSING_ERROR_MESSAGE = "Error processing image"
INVALID_RESULT_MESSAGE = "Error processing image: Invalid processing result"


class UploadService:
    """Application service responsible for image ingestion.

    This service orchestrates:
    - Upload validation (presence, size, extension, declared content type)
    - Identifier generation
    - Transcoding into the canonical original plus resized variants
    - Persisting original, variants and metadata, in that order
    """

    def __init__(
        self,
        *,
        storage: ArtifactStoreRepository | None = None,
        transcoder: ImageTranscoder | None = None,
    ) -> None:
        """Initialize the upload service with its collaborators."""
        self.storage = storage or get_artifact_store()
        self.transcoder = transcoder or ImageTranscoder()

    @staticmethod
    def generate_image_id() -> str:
        """Generate a unique image identifier."""
        return str(uuid.uuid4())

    @staticmethod
    def validate_upload(file: UploadedFile | None) -> UploadedFile:
        """Check an upload before any decode or storage work.

        Returns:
            The validated upload

        Raises:
            ValidationError: If the file is missing or empty
            FileSizeError: If the file exceeds MAX_FILE_SIZE
            UnsupportedExtensionError: If the extension is not allowed
            MIMETypeError: If the declared content type is not allowed
        """
        if file is None:
            raise ValidationError(message="No file was uploaded")

        if file.length <= 0:
            raise ValidationError(message="Uploaded file is empty")

        if file.length > MAX_FILE_SIZE:
            raise FileSizeError(
                message=f"File size exceeds {get_max_file_size_mb()}MB limit",
                details={"size": file.length, "max_size": MAX_FILE_SIZE},
            )

        # A bare ".jpg" counts as a .jpg file
        _, dot, suffix = Path(file.file_name or "").name.rpartition(".")
        extension = f".{suffix}".lower() if dot else ""
        if extension not in ALLOWED_EXTENSIONS:
            raise UnsupportedExtensionError(
                message=(
                    "Invalid file format. "
                    f"Only {', '.join(ALLOWED_EXTENSIONS)} are allowed"
                ),
                details={"extension": extension},
            )

        if (file.content_type or "").lower() not in ALLOWED_MIME_TYPES:
            raise MIMETypeError(
                message="Invalid image content type",
                details={"content_type": file.content_type},
            )

        return file

    async def process_upload(self, file: UploadedFile | None) -> ImageUploadResult:
        """Validate, transcode and persist one uploaded file.

        The ingestion flow is:
        1. Validate the upload
        2. Generate a fresh identifier
        3. Transcode into original + variants + metadata
        4. Store original, then variants, then metadata
        5. Discard partial artifacts if a storage write fails

        Returns:
            An ImageUploadResult; failures set ``success=False`` and ``error``
        """
        result = ImageUploadResult(
            original_file_name=file.file_name if file is not None else None,
            success=False,
        )

        try:
            upload = self.validate_upload(file)
        except ValidationError as exc:
            logger.info(
                "Upload rejected",
                extra={
                    "file_name": result.original_file_name,
                    "error_code": exc.error_code,
                },
            )
            result.error = exc.message
            return result

        image_id = self.generate_image_id()
        result.unique_id = image_id

        try:
            processed = await asyncio.to_thread(
                self.transcoder.process,
                BytesIO(upload.data),
                image_id,
            )
            if processed is None or not processed.is_complete():
                raise UnexpectedError(
                    message=INVALID_RESULT_MESSAGE,
                    details={"image_id": image_id},
                )

            await self._persist(processed, image_id)

        except UnexpectedError as exc:
            logger.error(
                "Transcoder returned an incomplete result",
                extra={"image_id": image_id, "file_name": upload.file_name},
            )
            result.error = exc.message
            return result

        except Exception:
            logger.exception(
                "Error processing image",
                extra={"image_id": image_id, "file_name": upload.file_name},
            )
            result.error = PROCESSING_ERROR_MESSAGE
            return result

        logger.info(
            "Image ingested successfully",
            extra={"image_id": image_id, "file_name": upload.file_name},
        )
        result.success = True
        return result

    async def process_uploads(self, files: list[UploadedFile]) -> list[ImageUploadResult]:
        """Ingest files one after another, preserving upload order."""
        results: list[ImageUploadResult] = []
        for file in files:
            results.append(await self.process_upload(file))
        return results

    async def _persist(self, processed: ImageProcessingResult, image_id: str) -> None:
        try:
            await asyncio.to_thread(
                self.storage.store_original,
                data=processed.original,
                image_id=image_id,
            )
            await asyncio.to_thread(
                self.storage.store_resized_set,
                variants=processed.variants,
                image_id=image_id,
            )
            await asyncio.to_thread(
                self.storage.store_metadata,
                metadata=processed.metadata,
                image_id=image_id,
            )
        except StorageError:
            logger.exception("Failed to persist image artifacts", extra={"image_id": image_id})

            # Best-effort cleanup to avoid orphaned artifacts
            try:
                await asyncio.to_thread(self.storage.discard, image_id)
            except Exception:
                logger.warning(
                    "Failed to clean up artifacts after storage failure",
                    extra={"image_id": image_id},
                )

            raise
