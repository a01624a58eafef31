"""
Business logic for image retrieval.

This module resolves stored variant locations and metadata records for a
previously ingested image identifier.
"""

from aws_lambda_powertools import Logger

from core.infrastructure.storage_factory import get_artifact_store
from core.models.errors import ValidationError
from core.models.image import ImageMetadata
from core.repositories.artifact_repository import ArtifactStoreRepository
from core.utils.constants import VARIANT_SIZES

logger = Logger(UTC=True)


class GetService:
    """Application service responsible for retrieving images and metadata.

    This service orchestrates:
    - Argument validation for identifier and size
    - Resolving the location of a resized variant
    - Reading variant bytes and metadata records from the artifact store
    """

    def __init__(self, *, storage: ArtifactStoreRepository | None = None) -> None:
        self.storage = storage or get_artifact_store()

    @staticmethod
    def _require(value: str | None, name: str) -> str:
        if value is None or not value.strip():
            raise ValidationError(
                message=f"{name} must not be empty",
                details={"argument": name},
            )
        return value.strip()

    @staticmethod
    def normalize_size(size: str) -> str:
        """Lowercase named sizes; anything else passes through verbatim."""
        lowered = size.lower()
        return lowered if lowered in VARIANT_SIZES else size

    def get_resized_image_path(self, image_id: str | None, size: str | None) -> str:
        """
        Resolve where the variant ``size`` of ``image_id`` is stored.

        The location is computed, not looked up: it is returned whether or
        not the artifact exists.

        Raises:
            ValidationError: If the identifier or size is blank
        """
        image_id = self._require(image_id, "image_id")
        size = self.normalize_size(self._require(size, "size"))

        return self.storage.resolve_path(image_id, size)

    def get_image_metadata(self, image_id: str | None) -> ImageMetadata | None:
        """
        Retrieve the metadata record of an image.

        Returns:
            The record, or None when it is absent or unusable

        Raises:
            ValidationError: If the identifier is blank
        """
        image_id = self._require(image_id, "image_id")

        metadata = self.storage.get_metadata(image_id)
        if metadata is None:
            logger.info("Image metadata not found", extra={"image_id": image_id})

        return metadata

    def read_resized_image(self, image_id: str | None, size: str | None) -> bytes:
        """
        Read the encoded bytes of one resized variant.

        Raises:
            ValidationError: If the identifier or size is blank
            NotFoundError: If the variant does not exist
            StorageError: If the backing store cannot be read
        """
        location = self.get_resized_image_path(image_id, size)

        logger.debug(
            "Reading resized image",
            extra={"image_id": image_id, "size": size, "path": location},
        )

        return self.storage.read_artifact(location)
