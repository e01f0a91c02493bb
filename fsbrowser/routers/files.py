from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse, PlainTextResponse

from ..deps import get_file_ops, raise_for_result, requested_path
from ..schemas import DirEntry, RenameRequest
from ..services.file_ops import FileOps
from ..services.paths import ROOT

router = APIRouter(prefix='/files', tags=['files'])


@router.get('', response_class=FileResponse)
async def download(path: str = Query(default=ROOT), ops: FileOps = Depends(get_file_ops)):
    target = raise_for_result(await ops.open_file(requested_path(path)))
    return FileResponse(target.path, media_type=target.media_type, headers={'Content-Disposition': 'inline'})


@router.post('', response_class=PlainTextResponse, status_code=status.HTTP_201_CREATED)
async def upload(
    path: str = Form(default=''),
    files: Optional[list[UploadFile]] = File(default=None),
    ops: FileOps = Depends(get_file_ops),
):
    dest = requested_path(path) if path else None
    raise_for_result(await ops.save_uploads(dest, files or []))
    return PlainTextResponse('OK', status_code=status.HTTP_201_CREATED)


@router.put('', response_model=DirEntry)
async def rename_file(payload: RenameRequest, ops: FileOps = Depends(get_file_ops)):
    result = await ops.rename(requested_path(payload.path), requested_path(payload.updates.path), expect_dir=False)
    return raise_for_result(result)


@router.delete('', response_class=PlainTextResponse)
async def delete_file(path: str = Query(default=ROOT), ops: FileOps = Depends(get_file_ops)):
    raise_for_result(await ops.delete_file(requested_path(path)))
    return PlainTextResponse('OK')
