"""Upload controller — handles multipart file uploads."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from landrop.api.events.services.broadcaster import EventBroadcaster
from landrop.api.settings.repositories.directory_registry import DirectoryRegistry
from landrop.api.upload.dto.upload import UploadResponse
from landrop.api.upload.services import upload_service
from landrop.dependencies import get_broadcaster, get_max_upload_size, get_registry
from landrop.errors import MalformedRequest, PayloadTooLarge

log = logging.getLogger(__name__)

router = APIRouter(tags=["Upload"])


@router.post("/upload", response_model=UploadResponse)
async def upload_files(
    request: Request,
    registry: DirectoryRegistry = Depends(get_registry),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    max_size: int = Depends(get_max_upload_size),
):
    """Stream every file field of a multipart body into the destination directory."""
    try:
        return await upload_service.ingest(
            request.stream(),
            request.headers.get("content-type"),
            registry=registry,
            broadcaster=broadcaster,
            max_size=max_size,
        )
    except MalformedRequest as e:
        log.warning(f"Rejected upload: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except PayloadTooLarge as e:
        log.warning(f"Rejected upload: {e}")
        raise HTTPException(status_code=413, detail=str(e))
