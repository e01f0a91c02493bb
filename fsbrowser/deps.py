from __future__ import annotations

from typing import TypeVar

from fastapi import HTTPException, Request, status

from .services.file_ops import FileOps
from .services.paths import normalize_relative, sanitize_path
from .services.result import FsErrorKind, FsResult

T = TypeVar('T')

_STATUS_BY_KIND = {
    FsErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FsErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    FsErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    FsErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    FsErrorKind.IO_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_file_ops(request: Request) -> FileOps:
    return request.app.state.file_ops


def raise_for_result(result: FsResult[T]) -> T:
    if result.error is not None:
        raise HTTPException(status_code=_STATUS_BY_KIND[result.error.kind], detail=result.error.message)
    return result.value


def requested_path(raw: str | None) -> str:
    return normalize_relative(sanitize_path(raw))
