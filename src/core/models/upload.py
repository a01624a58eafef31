"""Uploaded file model shared by the multipart parser and the upload service."""

from pydantic import BaseModel, ConfigDict, Field


class UploadedFile(BaseModel):
    """One file part of a multipart/form-data upload."""

    model_config = ConfigDict(frozen=True)

    file_name: str = Field("", description="Client-side file name")
    content_type: str = Field("", description="Declared MIME type of the part")
    data: bytes = Field(b"", description="Raw file content")

    @property
    def length(self) -> int:
        return len(self.data)
