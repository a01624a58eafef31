"""Abstract contract for image artifact persistence."""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from core.models.image import ImageMetadata


class ArtifactStoreRepository(ABC):
    """Contract for storing originals, resized variants and metadata.

    Three independent namespaces are keyed by the same image identifier.
    Implementations could be local disk, S3, GCS, etc.
    Services depend on this interface, not the implementation.
    """

    @abstractmethod
    def store_original(self, *, data: bytes, image_id: str) -> None:
        """Write (or overwrite) the canonical-format original.

        Raises:
            StorageError: If the write fails
        """

    @abstractmethod
    def store_resized_set(self, *, variants: Mapping[str, bytes], image_id: str) -> None:
        """Write (or overwrite) every named variant under the image's sub-collection.

        Raises:
            StorageError: If any write fails
        """

    @abstractmethod
    def store_metadata(self, *, metadata: ImageMetadata, image_id: str) -> None:
        """Serialize the metadata record as JSON under the image identifier.

        Raises:
            StorageError: If the write fails
        """

    @abstractmethod
    def resolve_path(self, image_id: str, size: str) -> str:
        """Return the location of a resized variant.

        Pure function of its arguments; does not check existence.
        """

    @abstractmethod
    def get_metadata(self, image_id: str) -> ImageMetadata | None:
        """Read the metadata record.

        Returns:
            The record, or None when it is missing, empty, corrupt or unreadable
        """

    @abstractmethod
    def read_artifact(self, location: str) -> bytes:
        """Read the bytes stored at a location returned by ``resolve_path``.

        Raises:
            NotFoundError: If nothing is stored there
            StorageError: If the read fails
        """

    @abstractmethod
    def discard(self, image_id: str) -> None:
        """Best-effort removal of every artifact stored for an identifier.

        Missing artifacts are ignored.

        Raises:
            StorageError: If removal fails
        """
