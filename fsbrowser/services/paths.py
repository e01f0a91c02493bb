from __future__ import annotations

import os
import posixpath
import re
from pathlib import Path
from urllib.parse import unquote

ROOT = '/'

# ".." bounded by a separator or by either end of the string
_TRAVERSAL_RE = re.compile(r'(?:(?<=/)|^)\.\.(?=/|$)')


class PathTraversalError(PermissionError):
    pass


def sanitize_path(raw: str | None) -> str:
    """Strip the first parent-traversal segment, then percent-decode.

    Single pass only: "/a/../../b" keeps its second "..", and an encoded "%2e%2e" is decoded
    after stripping and survives. Containment is enforced by PathResolver.checked.
    """
    value = raw or ROOT
    return unquote(_TRAVERSAL_RE.sub('', value, count=1))


def path_depth(rel: str) -> int:
    trimmed = rel.strip('/')
    if not trimmed:
        return 0
    return trimmed.count('/')


def normalize_relative(rel: str) -> str:
    # normalized without the leading "/" so an escaping ".." is kept for PathResolver.checked
    trimmed = posixpath.normpath(rel.strip('/') or '.')
    return ROOT if trimmed == '.' else ROOT + trimmed


def join_relative(parent: str, name: str) -> str:
    return posixpath.join(parent or ROOT, name)


class PathResolver:
    def __init__(self, base_root: str | os.PathLike[str], strict: bool = True):
        self._base = Path(base_root).resolve()
        self.strict = strict

    @property
    def base_root(self) -> Path:
        return self._base

    def resolve(self, rel: str) -> Path:
        # lstrip keeps an absolute-looking relative path from replacing the base in the join
        return Path(os.path.normpath(os.path.join(self._base, rel.lstrip('/'))))

    def contains(self, candidate: Path) -> bool:
        return candidate == self._base or self._base in candidate.parents

    def checked(self, rel: str) -> Path:
        candidate = self.resolve(rel)
        if self.strict and not self.contains(candidate):
            raise PathTraversalError('Path traversal detected')
        return candidate
