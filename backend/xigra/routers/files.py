"""
Encrypted file endpoints: upload, list, unlock, mark printed, delete, preview.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse

from xigra.dependencies import get_file_service
from xigra.limiter import limiter, upload_limit
from xigra.schemas import FileRecordResponse, StatusResponse, UploadResponse
from xigra.services.file_service import FileService

logger = logging.getLogger(__name__)

router = APIRouter()

# Mounted without the /api prefix
preview_router = APIRouter()


@router.post("/upload-encrypted", response_model=UploadResponse)
@limiter.limit(upload_limit)
def upload_encrypted(
    request: Request,
    shopId: Optional[str] = Form(None),
    originalName: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    files: FileService = Depends(get_file_service),
):
    """
    Accept a file the client already encrypted and store it locked.
    """
    body = file.file.read() if file is not None else b""
    record = files.ingest(shopId, originalName, body)
    return UploadResponse(file_id=record.id)


@router.get("/files/{shop_id}", response_model=List[FileRecordResponse])
def list_files(shop_id: str, files: FileService = Depends(get_file_service)):
    """List a shop's files, newest first."""
    return files.list_for_shop(shop_id)


@router.post("/unlock/{file_id}", response_model=StatusResponse)
def unlock_file(file_id: str, files: FileService = Depends(get_file_service)):
    files.unlock(file_id)
    return StatusResponse()


@router.post("/mark-printed/{file_id}", response_model=StatusResponse)
def mark_printed(file_id: str, files: FileService = Depends(get_file_service)):
    files.mark_printed(file_id)
    return StatusResponse()


@router.post("/delete/{file_id}", response_model=StatusResponse)
def delete_file(file_id: str, files: FileService = Depends(get_file_service)):
    files.delete(file_id)
    return StatusResponse()


@preview_router.get("/preview/{shop_id}/{filename}")
def preview_file(shop_id: str, filename: str, files: FileService = Depends(get_file_service)):
    """Serve an unlocked file from the shop's output directory."""
    return FileResponse(files.preview_path(shop_id, filename))
