from __future__ import annotations

import asyncio
import mimetypes
import os
import stat
from pathlib import Path
from typing import Optional

from ..schemas import DirEntry, DirListing
from .paths import ROOT, PathResolver, join_relative, normalize_relative, path_depth


def is_visible(name: str) -> bool:
    return not name.startswith('.')


def is_listed_entry(name: str, st: Optional[os.stat_result]) -> bool:
    """Hidden names, failed stats and anything but regular files and directories are dropped."""
    if not is_visible(name) or st is None:
        return False
    return stat.S_ISDIR(st.st_mode) or stat.S_ISREG(st.st_mode)


def guess_mime_type(name: str) -> Optional[str]:
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type


def _lstat_or_none(path: Path) -> Optional[os.stat_result]:
    try:
        return os.lstat(path)
    except OSError:
        return None


def _is_directory(path: Path) -> bool:
    try:
        return stat.S_ISDIR(os.lstat(path).st_mode)
    except (FileNotFoundError, NotADirectoryError):
        return False


async def read_dir(resolver: PathResolver, rel: str, depth: int) -> Optional[DirListing]:
    dir_path = resolver.checked(rel)
    if not await asyncio.to_thread(_is_directory, dir_path):
        return None

    try:
        names = await asyncio.to_thread(os.listdir, dir_path)
    except (FileNotFoundError, NotADirectoryError):
        return None

    names = [name for name in names if is_visible(name)]
    stats = await asyncio.gather(*(asyncio.to_thread(_lstat_or_none, dir_path / name) for name in names))

    entries: list[DirEntry] = []
    for name, st in zip(names, stats):
        if not is_listed_entry(name, st):
            continue
        is_dir = stat.S_ISDIR(st.st_mode)
        entries.append(
            DirEntry(
                path=join_relative(rel, name),
                is_dir=is_dir,
                mime_type=None if is_dir else guess_mime_type(name),
            )
        )
    return DirListing(files=entries, parent_path=rel, depth=depth)


def ancestor_prefixes(rel: str) -> list[str]:
    target = normalize_relative(rel)
    if target == ROOT:
        return [ROOT]
    parts = target.split('/')
    return ['/'.join(parts[: i + 1]) or ROOT for i in range(len(parts))]


def is_at_or_below(prefix: str, stop: str) -> bool:
    stop = normalize_relative(stop)
    if stop == ROOT:
        return True
    return prefix == stop or prefix.startswith(stop + '/')


async def read_dir_with_ancestors(resolver: PathResolver, rel: str, stop: str = ROOT) -> list[DirListing]:
    chain = [prefix for prefix in ancestor_prefixes(rel) if is_at_or_below(prefix, stop)]
    # depths count down the chain from the stop ancestor, so the root and its children never share a level
    top = path_depth(normalize_relative(stop))
    listings = await asyncio.gather(*(read_dir(resolver, prefix, top + i) for i, prefix in enumerate(chain)))
    return [listing for listing in listings if listing is not None]
