from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar('T')


class FsErrorKind(str, Enum):
    NOT_FOUND = 'not_found'
    FORBIDDEN = 'forbidden'
    CONFLICT = 'conflict'
    BAD_REQUEST = 'bad_request'
    IO_FAILURE = 'io_failure'


@dataclass(frozen=True)
class FsError:
    kind: FsErrorKind
    message: str


@dataclass(frozen=True)
class FsResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[FsError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> FsResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, kind: FsErrorKind, message: str) -> FsResult[T]:
        return cls(error=FsError(kind, message))


def not_found(message: str = 'Not found') -> FsResult:
    return FsResult.failure(FsErrorKind.NOT_FOUND, message)


def forbidden(message: str = 'Path traversal detected') -> FsResult:
    return FsResult.failure(FsErrorKind.FORBIDDEN, message)


def conflict(message: str = 'Already exists') -> FsResult:
    return FsResult.failure(FsErrorKind.CONFLICT, message)


def bad_request(message: str = 'Bad request') -> FsResult:
    return FsResult.failure(FsErrorKind.BAD_REQUEST, message)


def io_failure(message: str = 'Internal Server Error') -> FsResult:
    return FsResult.failure(FsErrorKind.IO_FAILURE, message)
