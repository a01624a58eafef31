import math

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    field_validator,
)

from core.utils.constants import IMAGE_ID_PATTERN, VARIANT_SIZES


class GetImageRequest(BaseModel):
    """Validation model for get resized image request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    image_id: StrictStr = Field(
        ...,
        min_length=1,
        pattern=IMAGE_ID_PATTERN,
        description="Image ID to retrieve",
    )

    size: StrictStr = Field(
        ...,
        min_length=1,
        description=(
            "Variant name (phone, tablet, desktop; any case) "
            "or a numeric size key"
        ),
    )

    @field_validator("size")
    @classmethod
    def validate_size(cls, value: str) -> str:
        if value.lower() in VARIANT_SIZES:
            return value.lower()

        try:
            numeric = float(value)
        except ValueError:
            raise ValueError(
                f"size must be one of {', '.join(VARIANT_SIZES)} or a number"
            ) from None

        if not math.isfinite(numeric):
            raise ValueError("size must be a finite number")

        return value
