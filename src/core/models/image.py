"""Shared image models: extracted metadata and transcoding output."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def _field_key(name: str) -> str:
    return name.replace("_", "").lower()


class _CaseInsensitiveModel(BaseModel):
    """Serializes with camelCase aliases, accepts any key casing on read."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        lookup = {_field_key(name): name for name in cls.model_fields}
        normalized: dict[str, Any] = {}
        for key, value in data.items():
            field_name = lookup.get(_field_key(str(key)))
            if field_name is not None:
                normalized[field_name] = value

        return normalized


class GeoLocation(_CaseInsensitiveModel):
    """Signed decimal-degree coordinates."""

    latitude: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")


class ImageMetadata(_CaseInsensitiveModel):
    """Camera and location metadata extracted from an uploaded image."""

    camera_make: str | None = Field(None, description="Camera manufacturer")
    camera_model: str | None = Field(None, description="Camera model")
    geo_location: GeoLocation | None = Field(None, description="Where the photo was taken")

    def to_record(self) -> dict[str, Any]:
        """Return the camelCase representation used for persistence and responses."""
        return self.model_dump(by_alias=True, mode="json")


class ImageProcessingResult(BaseModel):
    """Canonical-format original, its resized variants and extracted metadata."""

    model_config = ConfigDict(frozen=True)

    original: bytes
    variants: dict[str, bytes]
    metadata: ImageMetadata

    def is_complete(self) -> bool:
        return bool(self.original) and bool(self.variants)
