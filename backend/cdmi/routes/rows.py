"""Row items API routes."""
import mimetypes
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import FileResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from cdmi.config import settings
from cdmi.database import get_db
from cdmi.errors import InvalidInputError
from cdmi.schemas.common import Page
from cdmi.schemas.row_item import (
    RowItemCreate,
    RowItemDeleteResponse,
    RowItemResponse,
    RowItemUpdate,
)
from cdmi.services.archiver import FilePayload
from cdmi.services.lifecycle import lifecycle

router = APIRouter(prefix="/api/rows", tags=["rows"])


@router.post("", response_model=RowItemResponse, status_code=201)
async def create_row(
    request: Request,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    fingerprint: Optional[str] = Form(None),
    files: Optional[list[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
):
    """Create a row item; uploaded files are bundled into one ZIP."""
    fields = _validate(
        RowItemCreate,
        title=title,
        description=description,
        password=password,
        fingerprint=fingerprint,
    )
    payloads = await _read_payloads(files)
    return await lifecycle.create(db, fields, payloads, owner_ip=_client_ip(request))


@router.get("", response_model=Page[RowItemResponse])
async def list_rows(
    include_deleted: bool = Query(False, alias="includeDeleted"),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, alias="perPage"),
    db: AsyncSession = Depends(get_db),
):
    """List row items newest first. Soft-deleted rows only with includeDeleted."""
    rows, total = await lifecycle.list_rows(
        db, include_deleted=include_deleted, page=page, per_page=per_page
    )
    return Page[RowItemResponse].build(
        data=[RowItemResponse.model_validate(r) for r in rows],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/{row_id}", response_model=RowItemResponse)
async def get_row(row_id: int, db: AsyncSession = Depends(get_db)):
    """Get a single row item by ID."""
    return await lifecycle.get(db, row_id)


@router.api_route("/{row_id}", methods=["PUT", "PATCH"], response_model=RowItemResponse)
async def update_row(
    row_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    files: Optional[list[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
):
    """Update a row item. Only provided fields change; new files are appended unarchived."""
    provided = {
        key: value
        for key, value in {"title": title, "description": description, "password": password}.items()
        if value is not None
    }
    fields = _validate(RowItemUpdate, **provided)
    payloads = await _read_payloads(files)
    return await lifecycle.update(db, row_id, fields, payloads)


@router.post("/{row_id}/toggle-delete", response_model=RowItemResponse)
async def toggle_delete_row(row_id: int, db: AsyncSession = Depends(get_db)):
    """Soft delete a row item, or restore it if already soft-deleted."""
    return await lifecycle.toggle_soft_delete(db, row_id)


@router.delete("/{row_id}", response_model=RowItemDeleteResponse)
async def delete_row(row_id: int, db: AsyncSession = Depends(get_db)):
    """Permanently delete a row item and its files."""
    row = await lifecycle.hard_delete(db, row_id)
    return {"message": "Row item deleted successfully", "data": RowItemResponse.model_validate(row)}


@router.delete("/{row_id}/{credential}", response_model=RowItemDeleteResponse)
async def delete_row_with_credential(
    row_id: int,
    credential: str,
    db: AsyncSession = Depends(get_db),
):
    """Permanently delete a row item if the credential matches its password."""
    row = await lifecycle.hard_delete(db, row_id, credential=credential)
    return {"message": "Row item deleted successfully", "data": RowItemResponse.model_validate(row)}


@router.get("/{row_id}/download")
async def download_row(row_id: int, db: AsyncSession = Depends(get_db)):
    """Download the archive (first stored file) of a row item."""
    path = await lifecycle.download_path(db, row_id)
    media_type, _ = mimetypes.guess_type(path.name)
    return FileResponse(
        path=path,
        filename=path.name,
        media_type=media_type or "application/octet-stream",
    )


def _validate(schema, **values):
    """Build a request schema, reporting field errors as InvalidInputError."""
    try:
        return schema(**values)
    except ValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        raise InvalidInputError(
            "Invalid request fields",
            details={"errors": errors},
        ) from e


async def _read_payloads(files: Optional[list[UploadFile]]) -> list[FilePayload]:
    """Read uploaded parts into memory. Parts without a file name are ignored."""
    payloads = []
    for upload in files or []:
        if not upload.filename:
            continue
        try:
            content = await upload.read()
            error = None
        except OSError as e:
            content, error = None, str(e)
        finally:
            await upload.close()
        payloads.append(
            FilePayload(
                filename=upload.filename,
                content=content,
                content_type=upload.content_type,
                error=error,
            )
        )
    return payloads


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None
