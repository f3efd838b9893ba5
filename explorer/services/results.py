from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar('T')


class ResultType(str, Enum):
    SUCCESS = 'success'
    NOT_FOUND = 'not_found'
    UNAUTHORIZED = 'unauthorized'
    BAD_REQUEST = 'bad_request'
    ERROR = 'error'


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a core operation.

    Failures are returned rather than raised so a broad ``except`` in a caller
    can never swallow a confinement rejection. ``error_message`` is safe to show
    to clients: it never carries absolute paths.
    """

    type: ResultType
    data: Optional[T] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.type is ResultType.SUCCESS

    @classmethod
    def success(cls, data: T) -> Outcome[T]:
        return cls(ResultType.SUCCESS, data=data)

    @classmethod
    def not_found(cls, message: str) -> Outcome[T]:
        return cls(ResultType.NOT_FOUND, error_message=message)

    @classmethod
    def unauthorized(cls, message: str) -> Outcome[T]:
        return cls(ResultType.UNAUTHORIZED, error_message=message)

    @classmethod
    def bad_request(cls, message: str) -> Outcome[T]:
        return cls(ResultType.BAD_REQUEST, error_message=message)

    @classmethod
    def error(cls, message: str) -> Outcome[T]:
        return cls(ResultType.ERROR, error_message=message)

    def cast(self) -> Outcome:
        """Re-wrap a failed outcome for a caller with a different payload type."""
        if self.ok:
            raise ValueError('Only failed outcomes can be cast')
        return Outcome(self.type, error_message=self.error_message)
