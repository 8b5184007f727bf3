"""Settings controller — destination directory and server info."""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from landrop.api.settings.dto.settings import InfoResponse, SetDirRequest, SetDirResponse
from landrop.api.settings.repositories.directory_registry import DirectoryRegistry
from landrop.api.settings.services import settings_service
from landrop.dependencies import get_port, get_registry
from landrop.errors import DirectoryError

router = APIRouter(tags=["Settings"])


@router.get("/info", response_model=InfoResponse)
async def get_info(
    registry: DirectoryRegistry = Depends(get_registry),
    port: int = Depends(get_port),
):
    return settings_service.get_info(registry, port)


@router.post("/set_dir", response_model=SetDirResponse)
async def set_dir(request: Request, registry: DirectoryRegistry = Depends(get_registry)):
    """Switch the destination directory for uploads started from now on."""
    body = await request.body()
    try:
        data = SetDirRequest.model_validate_json(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f'Body must be JSON like {{"dir": "..."}}: {e}')

    try:
        return await settings_service.set_dir(registry, data.dir)
    except DirectoryError as e:
        raise HTTPException(status_code=400, detail=str(e))
