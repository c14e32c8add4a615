from pydantic import BaseModel, ConfigDict, Field
from typing import List


class UploadedFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "File uploaded successfully"
    filename: str
    originalname: str
    size: int
    mimetype: str
    path: str
    uploaded_at: str = Field(alias="uploadedAt")


class UploadResponse(BaseModel):
    success: bool = True
    files: List[UploadedFile]
    total: int


class RecordingEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    originalname: str
    size: int
    uploaded_at: str = Field(alias="uploadedAt")
    url: str
