"""EXIF metadata extraction for decoded images.

Reads camera make/model and GPS coordinates from the EXIF profile Pillow
exposes on a decoded image. Extraction never fails: missing or malformed
tags simply leave the corresponding field empty.
"""

from collections.abc import Sequence
from typing import Any

from aws_lambda_powertools import Logger
from PIL import ExifTags, Image

from core.models.image import GeoLocation, ImageMetadata

logger = Logger(UTC=True)

NEGATIVE_REFS = frozenset({"S", "W"})


def _rational_to_float(value: Any) -> float:
    """Convert an EXIF rational (IFDRational, (num, den) pair or number) to float."""
    if isinstance(value, tuple) and len(value) == 2:
        num, den = value
        if not den:
            raise ValueError("Rational with zero denominator")
        return float(num) / float(den)

    return float(value)


def _tag_to_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")

    text = str(value).strip().strip("\x00").strip()
    return text or None


def dms_to_decimal(dms: Sequence[Any], ref: str) -> float:
    """Convert a degrees/minutes/seconds triplet to signed decimal degrees.

    ``ref`` is the hemisphere letter; "S" and "W" (case-sensitive) negate
    the result.

    Raises:
        ValueError: If the triplet has fewer than three components or
            contains an invalid rational.
    """
    if dms is None or len(dms) < 3:
        raise ValueError("GPS coordinate requires degrees, minutes and seconds")

    degrees = _rational_to_float(dms[0])
    minutes = _rational_to_float(dms[1])
    seconds = _rational_to_float(dms[2])

    decimal = degrees + minutes / 60.0 + seconds / 3600.0
    if ref in NEGATIVE_REFS:
        decimal = -decimal

    return decimal


class ExifDataExtractor:
    """Builds an ImageMetadata record from an image's EXIF profile."""

    def extract(self, image: Image.Image) -> ImageMetadata:
        exif = image.getexif()
        if not exif:
            logger.debug("No EXIF profile found")
            return ImageMetadata()

        camera_make = _tag_to_str(exif.get(ExifTags.Base.Make))
        camera_model = _tag_to_str(exif.get(ExifTags.Base.Model))

        metadata = ImageMetadata(
            camera_make=camera_make,
            camera_model=camera_model,
            geo_location=self._extract_geolocation(exif),
        )

        logger.debug(
            "Extracted EXIF metadata",
            extra={
                "camera_make": camera_make,
                "camera_model": camera_model,
                "has_geolocation": metadata.geo_location is not None,
            },
        )
        return metadata

    @staticmethod
    def _extract_geolocation(exif: Image.Exif) -> GeoLocation | None:
        try:
            gps = exif.get_ifd(ExifTags.IFD.GPSInfo)
            if not gps:
                return None

            latitude = gps.get(ExifTags.GPS.GPSLatitude)
            latitude_ref = _tag_to_str(gps.get(ExifTags.GPS.GPSLatitudeRef))
            longitude = gps.get(ExifTags.GPS.GPSLongitude)
            longitude_ref = _tag_to_str(gps.get(ExifTags.GPS.GPSLongitudeRef))

            if latitude is None or longitude is None or not latitude_ref or not longitude_ref:
                return None

            return GeoLocation(
                latitude=dms_to_decimal(latitude, latitude_ref),
                longitude=dms_to_decimal(longitude, longitude_ref),
            )
        except Exception:
            logger.warning("Unable to read GPS data from EXIF profile", exc_info=True)
            return None
