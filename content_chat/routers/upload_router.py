"""
Upload API router.

Spreadsheet and JSON ingestion. Uploaded files are spooled to a temporary
file for parsing and removed afterwards, whatever the outcome.
"""

import asyncio
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import structlog
from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    UploadFile,
    status,
)
from fastapi.responses import FileResponse

from ..config import get_settings
from ..dependencies import get_upload_service
from ..domain.exceptions import ValidationException
from ..services.upload_service import UploadService
from .models import ErrorResponse, JsonUploadRequest

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])

ALLOWED_CONTENT_TYPES = {
    "application/vnd.ms-excel": ".xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ".xlsx",
    "text/csv": ".csv",
}
ALLOWED_SUFFIXES = {".xls", ".xlsx", ".csv"}
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

UPLOAD_ERRORS = {
    400: {"description": "Invalid file or content", "model": ErrorResponse},
    413: {"description": "File too large"},
}


async def _read_upload(file: UploadFile) -> bytes:
    """
    Read an uploaded spreadsheet, enforcing type and size limits.

    Raises:
        ValidationException: Unsupported MIME type or empty file
        HTTPException: 413 if the file exceeds MAX_UPLOAD_BYTES
    """
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationException(
            "file",
            file.content_type,
            "Invalid file type. Only Excel (.xlsx, .xls) and CSV files are allowed.",
        )

    max_bytes = get_settings().MAX_UPLOAD_BYTES
    data = await file.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds {max_bytes} bytes",
        )
    if not data:
        raise ValidationException("file", file.filename, "No file uploaded")
    return data


def _suffix_for(file: UploadFile) -> str:
    suffix = Path(file.filename or "").suffix.lower()
    if suffix in ALLOWED_SUFFIXES:
        return suffix
    return ALLOWED_CONTENT_TYPES.get(file.content_type or "", ".xlsx")


def _write_temp_file(data: bytes, suffix: str) -> Path:
    temp_dir = Path(get_settings().TEMP_DIR)
    temp_dir.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(dir=str(temp_dir), prefix="upload-", suffix=suffix)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
    except OSError:
        path.unlink(missing_ok=True)
        raise
    return path


@asynccontextmanager
async def _spooled(data: bytes, suffix: str) -> AsyncIterator[Path]:
    """Write data to a temporary file that is deleted on exit."""
    path = await asyncio.to_thread(_write_temp_file, data, suffix)
    try:
        yield path
    finally:
        await asyncio.to_thread(path.unlink, missing_ok=True)


@router.post("/excel", responses=UPLOAD_ERRORS, summary="Upload spreadsheet")
async def upload_spreadsheet(
    file: UploadFile = File(...),
    bot_id: Optional[str] = Form(None),
    content_type: str = Form("tour"),
    publish: bool = Form(False),
    title_column: str = Form("title"),
    description_column: str = Form("description"),
    service: UploadService = Depends(get_upload_service),
):
    """Create one content entry per spreadsheet row."""
    data = await _read_upload(file)
    async with _spooled(data, _suffix_for(file)) as path:
        result = await service.process_spreadsheet(
            path,
            content_type=content_type,
            publish=publish,
            title_column=title_column,
            description_column=description_column,
            bot_id=bot_id,
            file_name=file.filename,
        )
    return {"message": "File processed successfully", **result}


@router.post("/excel/preview", responses=UPLOAD_ERRORS, summary="Preview spreadsheet")
async def preview_spreadsheet(
    file: UploadFile = File(...),
    service: UploadService = Depends(get_upload_service),
):
    data = await _read_upload(file)
    async with _spooled(data, _suffix_for(file)) as path:
        preview = await service.preview_spreadsheet(path)
    return {"message": "File preview generated", "preview": preview}


@router.post("/excel/validate", responses=UPLOAD_ERRORS, summary="Validate spreadsheet")
async def validate_spreadsheet(
    file: UploadFile = File(...),
    service: UploadService = Depends(get_upload_service),
):
    data = await _read_upload(file)
    async with _spooled(data, _suffix_for(file)) as path:
        validation = await service.validate_spreadsheet(path)
    return {"validation": validation}


@router.post("/json", responses=UPLOAD_ERRORS, summary="Upload JSON data")
async def upload_json(
    request: JsonUploadRequest,
    service: UploadService = Depends(get_upload_service),
):
    result = await service.process_json_data(
        request.data,
        content_type=request.content_type,
        publish=request.publish,
        bot_id=request.bot_id,
    )
    return {"message": "Data processed successfully", **result}


@router.get("/history", summary="Upload history")
async def get_upload_history(
    bot_id: Optional[str] = Query(None, alias="botId"),
    limit: int = Query(10, ge=1, le=100),
    service: UploadService = Depends(get_upload_service),
):
    history = await service.get_upload_history(bot_id=bot_id, limit=limit)
    return {"history": history}


@router.get("/template", summary="Download spreadsheet template")
async def download_template(
    background_tasks: BackgroundTasks,
    content_type: str = Query("tour", alias="contentType", min_length=1, max_length=50),
    service: UploadService = Depends(get_upload_service),
):
    """Sample spreadsheet for a content type; the file is removed after sending."""
    path = await service.generate_template(content_type)
    background_tasks.add_task(path.unlink, missing_ok=True)
    return FileResponse(
        path,
        media_type=XLSX_MEDIA_TYPE,
        filename=f"{path.name.split('_template_')[0]}_template.xlsx",
    )
