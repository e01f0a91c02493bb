from __future__ import annotations

import asyncio
import logging
import os
import posixpath
import shutil
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Protocol, Sequence, TypeVar

from ..schemas import DirEntry, DirListing
from .listing import guess_mime_type, read_dir, read_dir_with_ancestors
from .paths import ROOT, PathResolver, PathTraversalError, normalize_relative, path_depth
from .result import FsResult, bad_request, conflict, forbidden, io_failure, not_found

logger = logging.getLogger(__name__)

T = TypeVar('T')

DEFAULT_MEDIA_TYPE = 'application/octet-stream'


class UploadSource(Protocol):
    filename: Optional[str]

    async def read(self, size: int = -1) -> bytes:
        ...


@dataclass(frozen=True)
class DownloadTarget:
    path: Path
    media_type: str


def _entry_kind(path: Path) -> Optional[str]:
    try:
        mode = os.lstat(path).st_mode
    except (FileNotFoundError, NotADirectoryError):
        return None
    if stat.S_ISDIR(mode):
        return 'dir'
    if stat.S_ISREG(mode):
        return 'file'
    return None


def _upload_name(upload: UploadSource) -> str:
    name = posixpath.basename((upload.filename or '').replace('\\', '/'))
    if name in {'', '.', '..'}:
        return ''
    return name


def _flush_and_sync(f) -> None:
    f.flush()
    os.fsync(f.fileno())


def _fsync_dir(path: Path) -> None:
    dir_fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)


def _discard(tmp: str) -> None:
    Path(tmp).unlink(missing_ok=True)


class FileOps:
    def __init__(self, resolver: PathResolver, chunk_bytes: int = 1024 * 1024):
        self.resolver = resolver
        self.chunk_bytes = chunk_bytes

    async def _guarded(self, action: str, rel: str, op: Callable[[], Awaitable[FsResult[T]]]) -> FsResult[T]:
        try:
            return await op()
        except PathTraversalError:
            logger.warning('Rejected %s outside base root: %r', action, rel)
            return forbidden()
        except ValueError:
            # embedded NUL bytes and similar malformed names
            logger.warning('Rejected %s with an invalid path: %r', action, rel)
            return bad_request('Invalid path')
        except OSError:
            logger.exception('Failed to %s %r', action, rel)
            return io_failure()

    async def list_directory(self, rel: str) -> FsResult[DirListing]:
        async def op() -> FsResult[DirListing]:
            listing = await read_dir(self.resolver, rel, path_depth(rel))
            if listing is None:
                return not_found()
            return FsResult.success(listing)

        return await self._guarded('list directory', rel, op)

    async def list_with_ancestors(self, rel: str, stop: str = ROOT) -> FsResult[list[DirListing]]:
        async def op() -> FsResult[list[DirListing]]:
            return FsResult.success(await read_dir_with_ancestors(self.resolver, rel, stop))

        return await self._guarded('list ancestors of', rel, op)

    async def make_directory(self, rel: str) -> FsResult[str]:
        async def op() -> FsResult[str]:
            target = self.resolver.checked(rel)
            if target == self.resolver.base_root:
                return conflict()
            try:
                await asyncio.to_thread(target.mkdir, parents=False, exist_ok=False)
            except FileExistsError:
                return conflict()
            except FileNotFoundError:
                return not_found('Parent directory not found')
            logger.info('Created directory %s', rel)
            return FsResult.success(normalize_relative(rel))

        return await self._guarded('create directory', rel, op)

    async def rename(self, rel: str, new_rel: str, expect_dir: bool) -> FsResult[DirEntry]:
        async def op() -> FsResult[DirEntry]:
            source = self.resolver.checked(rel)
            target = self.resolver.checked(new_rel)
            if self.resolver.base_root in (source, target):
                return forbidden('The base directory cannot be renamed')

            kind = await asyncio.to_thread(_entry_kind, source)
            if kind != ('dir' if expect_dir else 'file'):
                return not_found()
            if await asyncio.to_thread(os.path.lexists, target):
                return conflict()

            try:
                await asyncio.to_thread(os.rename, source, target)
            except FileNotFoundError:
                return not_found('Target directory not found')

            new_path = normalize_relative(new_rel)
            logger.info('Renamed %s to %s', rel, new_path)
            return FsResult.success(
                DirEntry(
                    path=new_path,
                    is_dir=expect_dir,
                    mime_type=None if expect_dir else guess_mime_type(posixpath.basename(new_path)),
                )
            )

        return await self._guarded('rename', rel, op)

    async def delete_directory(self, rel: str) -> FsResult[str]:
        async def op() -> FsResult[str]:
            target = self.resolver.checked(rel)
            if target == self.resolver.base_root:
                return forbidden('The base directory cannot be deleted')
            await asyncio.to_thread(shutil.rmtree, target)
            logger.info('Deleted directory %s', rel)
            return FsResult.success(normalize_relative(rel))

        return await self._guarded('delete directory', rel, op)

    async def delete_file(self, rel: str) -> FsResult[str]:
        async def op() -> FsResult[str]:
            target = self.resolver.checked(rel)
            await asyncio.to_thread(os.unlink, target)
            logger.info('Deleted file %s', rel)
            return FsResult.success(normalize_relative(rel))

        return await self._guarded('delete file', rel, op)

    async def open_file(self, rel: str) -> FsResult[DownloadTarget]:
        async def op() -> FsResult[DownloadTarget]:
            target = self.resolver.checked(rel)
            if await asyncio.to_thread(_entry_kind, target) != 'file':
                return not_found()
            media_type = guess_mime_type(target.name) or DEFAULT_MEDIA_TYPE
            return FsResult.success(DownloadTarget(path=target, media_type=media_type))

        return await self._guarded('open file', rel, op)

    async def save_uploads(self, rel: Optional[str], uploads: Sequence[UploadSource]) -> FsResult[list[str]]:
        """Write every upload into the directory ``rel`` (base root when empty), concurrently.

        Uploads are staged next to their targets and only moved into place once all of them
        were written, so a failed request leaves the directory as it was.
        """
        dest = rel or ROOT

        async def op() -> FsResult[list[str]]:
            if not uploads:
                return bad_request()
            names = [_upload_name(upload) for upload in uploads]
            if not all(names):
                return bad_request('Invalid file name')
            if len(set(names)) != len(names):
                return bad_request('Duplicate file name')

            target_dir = self.resolver.checked(dest)
            if await asyncio.to_thread(_entry_kind, target_dir) != 'dir':
                return not_found()

            staged = await asyncio.gather(
                *(self._stage_upload(target_dir, name, upload) for name, upload in zip(names, uploads)),
                return_exceptions=True,
            )
            failures = [item for item in staged if isinstance(item, BaseException)]
            if failures:
                await asyncio.gather(
                    *(asyncio.to_thread(_discard, tmp) for tmp in staged if not isinstance(tmp, BaseException))
                )
                raise failures[0]

            for tmp, name in zip(staged, names):
                await asyncio.to_thread(os.replace, tmp, target_dir / name)
            await asyncio.to_thread(_fsync_dir, target_dir)

            base = normalize_relative(dest)
            saved = [posixpath.join(base, name) for name in names]
            logger.info('Uploaded %d file(s) to %s', len(saved), base)
            return FsResult.success(saved)

        return await self._guarded('upload into', dest, op)

    async def _stage_upload(self, target_dir: Path, name: str, upload: UploadSource) -> str:
        fd, tmp = await asyncio.to_thread(tempfile.mkstemp, prefix=f'.{name}.', suffix='.part', dir=str(target_dir))
        try:
            with os.fdopen(fd, 'wb') as f:
                while chunk := await upload.read(self.chunk_bytes):
                    await asyncio.to_thread(f.write, chunk)
                await asyncio.to_thread(_flush_and_sync, f)
        except Exception:
            await asyncio.to_thread(_discard, tmp)
            raise
        return tmp
