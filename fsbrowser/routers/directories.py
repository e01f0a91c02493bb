from __future__ import annotations

from typing import Union

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from ..deps import get_file_ops, raise_for_result, requested_path
from ..schemas import DirEntry, DirListing, RenameRequest
from ..services.file_ops import FileOps
from ..services.paths import ROOT

router = APIRouter(prefix='/directories', tags=['directories'])


@router.get('', response_model=Union[DirListing, list[DirListing]])
async def get_directory(
    path: str = Query(default=ROOT),
    with_parents: bool = Query(default=False, alias='withParents'),
    top_parent: str = Query(default=ROOT, alias='withParentsTopParent'),
    ops: FileOps = Depends(get_file_ops),
):
    requested = requested_path(path)
    if with_parents:
        return raise_for_result(await ops.list_with_ancestors(requested, requested_path(top_parent)))
    return raise_for_result(await ops.list_directory(requested))


@router.post('', response_class=PlainTextResponse)
async def create_directory(path: str = Query(default=ROOT), ops: FileOps = Depends(get_file_ops)):
    raise_for_result(await ops.make_directory(requested_path(path)))
    return PlainTextResponse('OK')


@router.put('', response_model=DirEntry)
async def rename_directory(payload: RenameRequest, ops: FileOps = Depends(get_file_ops)):
    result = await ops.rename(requested_path(payload.path), requested_path(payload.updates.path), expect_dir=True)
    return raise_for_result(result)


@router.delete('', response_class=PlainTextResponse)
async def delete_directory(path: str = Query(default=ROOT), ops: FileOps = Depends(get_file_ops)):
    raise_for_result(await ops.delete_directory(requested_path(path)))
    return PlainTextResponse('OK')
