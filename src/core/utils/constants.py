"""Global constants used throughout the application.

This module centralizes all magic numbers, string literals, and configuration
values that are used across multiple modules. Using constants prevents hardcoding
values and makes it easy to change them globally.
"""

from typing import Final

# ============================================================================
# Error Codes
# ============================================================================


# Validation Errors
ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_CODE_UNSUPPORTED_MIME_TYPE = "UNSUPPORTED_MIME_TYPE"
ERROR_CODE_UNSUPPORTED_EXTENSION = "UNSUPPORTED_EXTENSION"
ERROR_CODE_FILE_SIZE_EXCEEDED = "FILE_SIZE_EXCEEDED"
ERROR_CODE_PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"

# Not Found Errors
ERROR_CODE_RESOURCE_NOT_FOUND = "NOT_FOUND"

# Processing Errors
ERROR_CODE_IMAGE_DECODE_FAILED = "IMAGE_DECODE_FAILED"
ERROR_CODE_IMAGE_ENCODE_FAILED = "IMAGE_ENCODE_FAILED"

# Storage Errors
ERROR_CODE_STORAGE = "STORAGE_ERROR"
ERROR_CODE_ARTIFACT_WRITE_FAILED = "ARTIFACT_WRITE_FAILED"
ERROR_CODE_ARTIFACT_READ_FAILED = "ARTIFACT_READ_FAILED"

# Internal / Unexpected
ERROR_CODE_INTERNAL_ERROR = "INTERNAL_ERROR"


# ============================================================================
# File Upload Constraints
# ============================================================================

MAX_FILE_SIZE: Final[int] = 2_000_000  # bytes, per uploaded file
MAX_REQUEST_BODY_SIZE: Final[int] = 20_000_000  # bytes, whole multipart body

UPLOAD_FORM_FIELD = "Files"

ALLOWED_EXTENSIONS: Final[tuple[str, ...]] = (".jpg", ".jpeg", ".png", ".webp")

ALLOWED_MIME_TYPES: Final[frozenset[str]] = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
    }
)


# ============================================================================
# Canonical Output Format
# ============================================================================

OUTPUT_FORMAT = "WEBP"
OUTPUT_EXTENSION = "webp"
OUTPUT_MIME_TYPE = "image/webp"

DEFAULT_WEBP_QUALITY = 80

# Bounding boxes (width, height) for the responsive variants.
VARIANT_SIZES: Final[dict[str, tuple[int, int]]] = {
    "phone": (640, 1136),
    "tablet": (1536, 2048),
    "desktop": (1920, 1080),
}


# ============================================================================
# Storage Layout
# ============================================================================

ORIGINALS_NAMESPACE = "originals"
RESIZED_NAMESPACE = "resized"
METADATA_NAMESPACE = "metadata"

DEFAULT_STORAGE_ROOT = "storage"
S3_LOCATOR_SCHEME = "s3://"

IMAGE_ID_PATTERN = r"^[a-zA-Z0-9_-]+$"


# ============================================================================
# Observability
# ============================================================================

METRICS_NAMESPACE = "ImageIngestion"
SERVICE_NAME = "image-ingestion"


# ============================================================================
# API Gateway Configuration
# ============================================================================

CORS_ORIGIN = "*"
CORS_METHODS = "GET,POST,OPTIONS"
CORS_HEADERS = "Content-Type,Authorization,X-Api-Key"
EXPOSE_HEADERS = "Content-Type,Content-Length"
DEFAULT_CONTENT_TYPE = "application/json"

# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_IMAGE_STORAGE_ROOT = "IMAGE_STORAGE_ROOT"
ENV_WEBP_QUALITY = "WEBP_QUALITY"
ENV_WEBP_LOSSLESS = "WEBP_LOSSLESS"
ENV_AWS_ENDPOINT_URL = "AWS_ENDPOINT_URL"
ENV_AWS_REGION = "AWS_REGION"

# ============================================================================
# Helper Functions
# ============================================================================


def get_max_file_size_mb() -> int:
    """Get maximum file size in (decimal) megabytes."""
    return MAX_FILE_SIZE // 1_000_000


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable (decimal) units.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted file size string
    """
    size: float = float(size_bytes)

    for unit in ("B", "KB", "MB", "GB"):
        if size < 1000.0:
            return f"{size:.1f} {unit}"
        size /= 1000.0

    return f"{size:.1f} TB"
