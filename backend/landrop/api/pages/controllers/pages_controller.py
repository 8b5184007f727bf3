"""Pages controller — the upload page and its script."""

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse, HTMLResponse
from fastapi.templating import Jinja2Templates

from landrop.dependencies import get_max_upload_size, get_port

router = APIRouter(tags=["Pages"])

PACKAGE_DIR = Path(__file__).parent.parent.parent.parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"
STATIC_DIR = PACKAGE_DIR / "static"
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def _filesize(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024**2:
        return f"{size / 1024:.1f} KB"
    if size < 1024**3:
        return f"{size / 1024**2:.1f} MB"
    return f"{size / 1024**3:.1f} GB"


templates.env.filters["filesize"] = _filesize


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    port: int = Depends(get_port),
    max_size: int = Depends(get_max_upload_size),
):
    return templates.TemplateResponse(request, "index.html", {"port": port, "max_size": max_size})


@router.get("/main.js")
async def main_js():
    return FileResponse(STATIC_DIR / "main.js", media_type="text/javascript")
