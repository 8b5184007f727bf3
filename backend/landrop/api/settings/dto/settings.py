"""Settings Data Transfer Objects."""

from pydantic import BaseModel


class InfoResponse(BaseModel):
    ips: list[str]
    port: int
    dir: str


class SetDirRequest(BaseModel):
    dir: str


class SetDirResponse(BaseModel):
    status: str = "ok"
    dir: str
