"""Builds the artifact store from the configured storage locator.

``IMAGE_STORAGE_ROOT`` is either a filesystem path or an
``s3://<bucket>[/<prefix>]`` locator.
"""

from functools import lru_cache
import os

from aws_lambda_powertools import Logger

from core.infrastructure.adapters.s3_adapter import S3Adapter
from core.infrastructure.aws.s3_artifact_store import S3ArtifactStore
from core.infrastructure.local.filesystem_artifact_store import LocalArtifactStore
from core.repositories.artifact_repository import ArtifactStoreRepository
from core.utils.constants import (
    DEFAULT_STORAGE_ROOT,
    ENV_IMAGE_STORAGE_ROOT,
    S3_LOCATOR_SCHEME,
)

logger = Logger(UTC=True)


def parse_s3_locator(locator: str) -> tuple[str, str]:
    """Split ``s3://bucket/prefix`` into ``(bucket, prefix)``."""
    bucket, _, prefix = locator[len(S3_LOCATOR_SCHEME):].partition("/")
    if not bucket:
        raise ValueError(f"Invalid S3 storage locator: {locator!r}")

    return bucket, prefix.strip("/")


def build_artifact_store(locator: str | None = None) -> ArtifactStoreRepository:
    """Create an artifact store for ``locator`` (defaults to the environment)."""
    locator = locator or os.getenv(ENV_IMAGE_STORAGE_ROOT) or DEFAULT_STORAGE_ROOT

    if locator.lower().startswith(S3_LOCATOR_SCHEME):
        bucket, prefix = parse_s3_locator(locator)
        logger.info("Using S3 artifact store", extra={"bucket": bucket, "prefix": prefix})
        return S3ArtifactStore(S3Adapter(bucket), prefix=prefix)

    logger.info("Using local artifact store", extra={"root": locator})
    return LocalArtifactStore(locator)


@lru_cache(maxsize=1)
def get_artifact_store() -> ArtifactStoreRepository:
    """Process-wide shared artifact store, reused across warm invocations."""
    return build_artifact_store()
