"""Pydantic models for the image upload response."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ImageUploadResult(BaseModel):
    """Outcome of ingesting one uploaded file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    original_file_name: str | None = Field(None, description="File name as uploaded")
    unique_id: str | None = Field(None, description="Identifier assigned to the stored image")
    success: bool = Field(False, description="Whether every artifact was stored")
    error: str | None = Field(None, description="Human-readable failure reason")

    def to_response(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)
