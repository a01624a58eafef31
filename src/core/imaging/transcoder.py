"""Decode an uploaded image and re-encode it into the canonical web format.

The transcoder produces the full-resolution original plus one
aspect-preserving variant per entry in ``VARIANT_SIZES``. Every output is
encoded as WebP; a failure on any step fails the whole operation.
"""

from io import BytesIO
import os
from typing import BinaryIO

from aws_lambda_powertools import Logger
from PIL import Image, ImageOps, UnidentifiedImageError

from core.imaging.exif_extractor import ExifDataExtractor
from core.models.errors import DecodeError, ImageEncodeError
from core.models.image import ImageProcessingResult
from core.utils.constants import (
    DEFAULT_WEBP_QUALITY,
    ENV_WEBP_LOSSLESS,
    ENV_WEBP_QUALITY,
    OUTPUT_FORMAT,
    VARIANT_SIZES,
)

logger = Logger(UTC=True)

Size = tuple[int, int]


def fit_within(size: Size, box: Size) -> Size:
    """Scale ``size`` to fit inside ``box`` preserving aspect ratio.

    Never upscales: an image already inside the box keeps its own size.
    """
    width, height = size
    box_width, box_height = box

    scale = min(box_width / width, box_height / height, 1.0)

    return (
        max(1, round(width * scale)),
        max(1, round(height * scale)),
    )


def _env_lossless() -> bool:
    return os.getenv(ENV_WEBP_LOSSLESS, "false").strip().lower() in {"1", "true", "yes"}


def _env_quality() -> int:
    raw = os.getenv(ENV_WEBP_QUALITY)
    if not raw:
        return DEFAULT_WEBP_QUALITY

    try:
        quality = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid WebP quality", extra={"value": raw})
        return DEFAULT_WEBP_QUALITY

    return min(max(quality, 1), 100)


class ImageTranscoder:
    """Stateless image pipeline: decode, extract metadata, encode, resize.

    A single instance is safe to share between concurrent requests.
    """

    def __init__(
        self,
        *,
        extractor: ExifDataExtractor | None = None,
        quality: int | None = None,
        lossless: bool | None = None,
        variant_sizes: dict[str, Size] | None = None,
    ) -> None:
        self._extractor = extractor or ExifDataExtractor()
        self._quality = quality if quality is not None else _env_quality()
        self._lossless = lossless if lossless is not None else _env_lossless()
        self._variant_sizes = dict(variant_sizes or VARIANT_SIZES)

    def process(self, stream: BinaryIO, image_id: str) -> ImageProcessingResult:
        """Transcode an image stream into an ImageProcessingResult.

        Args:
            stream: Readable binary stream holding the uploaded image
            image_id: Identifier used only for log correlation

        Raises:
            DecodeError: If the stream is not a decodable image
            ImageEncodeError: If the original or any variant fails to encode
        """
        logger.debug("Transcoding image", extra={"image_id": image_id})

        image = self._decode(stream, image_id)
        try:
            metadata = self._extractor.extract(image)
            upright = self._prepare(image, image_id)

            original = self._encode(upright, image_id, label="original")
            variants = {
                name: self._encode(
                    self._resize(upright, box),
                    image_id,
                    label=name,
                )
                for name, box in self._variant_sizes.items()
            }
        finally:
            image.close()

        logger.info(
            "Image transcoded",
            extra={
                "image_id": image_id,
                "original_bytes": len(original),
                "variants": sorted(variants),
            },
        )

        return ImageProcessingResult(
            original=original,
            variants=variants,
            metadata=metadata,
        )

    @staticmethod
    def _decode(stream: BinaryIO, image_id: str) -> Image.Image:
        try:
            image = Image.open(stream)
            image.load()
            return image
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            logger.warning("Unable to decode image", extra={"image_id": image_id})
            raise DecodeError(
                message="Uploaded file is not a valid image",
                details={"image_id": image_id},
            ) from exc

    @staticmethod
    def _prepare(image: Image.Image, image_id: str) -> Image.Image:
        """Apply EXIF orientation and convert to a mode WebP can store."""
        try:
            upright = ImageOps.exif_transpose(image) or image

            if upright.mode in ("RGB", "RGBA"):
                return upright

            has_alpha = "A" in upright.getbands() or "transparency" in upright.info
            return upright.convert("RGBA" if has_alpha else "RGB")
        except (OSError, ValueError) as exc:
            logger.error("Unable to normalize image mode", extra={"image_id": image_id})
            raise ImageEncodeError(
                message="Unable to encode image",
                details={"image_id": image_id, "mode": image.mode},
            ) from exc

    @staticmethod
    def _resize(image: Image.Image, box: Size) -> Image.Image:
        target = fit_within(image.size, box)
        if target == image.size:
            return image

        return image.resize(target, Image.Resampling.LANCZOS)

    def _encode(self, image: Image.Image, image_id: str, *, label: str) -> bytes:
        buffer = BytesIO()
        try:
            image.save(
                buffer,
                format=OUTPUT_FORMAT,
                quality=self._quality,
                lossless=self._lossless,
            )
        except (OSError, ValueError) as exc:
            logger.error(
                "Unable to encode image",
                extra={"image_id": image_id, "artifact": label},
            )
            raise ImageEncodeError(
                message="Unable to encode image",
                details={"image_id": image_id, "artifact": label},
            ) from exc

        return buffer.getvalue()
