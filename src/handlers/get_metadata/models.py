from pydantic import BaseModel, ConfigDict, Field, StrictStr

from core.utils.constants import IMAGE_ID_PATTERN


class GetMetadataRequest(BaseModel):
    """Validation model for get image metadata request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    image_id: StrictStr = Field(
        ...,
        min_length=1,
        pattern=IMAGE_ID_PATTERN,
        description="Image ID whose metadata to retrieve",
    )
