"""Upload event Data Transfer Objects."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class UploadStatus(str, Enum):
    STARTED = "started"
    PROGRESS = "progress"
    DONE = "done"


class UploadEvent(BaseModel):
    """One lifecycle step of an uploaded file, as seen by observers."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file_name: str = Field(alias="file")
    status: UploadStatus
    bytes_written: int | None = Field(default=None, alias="bytes", ge=0)

    @model_validator(mode="after")
    def _bytes_only_for_progress(self):
        if (self.status is UploadStatus.PROGRESS) != (self.bytes_written is not None):
            raise ValueError("bytes is required for progress events and only for them")
        return self

    @classmethod
    def started(cls, file_name: str) -> "UploadEvent":
        return cls(file_name=file_name, status=UploadStatus.STARTED)

    @classmethod
    def progress(cls, file_name: str, bytes_written: int) -> "UploadEvent":
        return cls(file_name=file_name, status=UploadStatus.PROGRESS, bytes_written=bytes_written)

    @classmethod
    def done(cls, file_name: str) -> "UploadEvent":
        return cls(file_name=file_name, status=UploadStatus.DONE)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
