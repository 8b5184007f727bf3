"""Upload Data Transfer Objects."""

from pydantic import BaseModel


class SavedFile(BaseModel):
    name: str
    size: int


class UploadResponse(BaseModel):
    status: str = "ok"
    files: list[SavedFile] = []
