"""
Result type returned by the service layer.
Expected failures (missing field, bad password, stale token) come back as
Err values; views turn them into HTTP errors with api.errors.unwrap.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(Enum):
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL = 500

    @property
    def status(self) -> int:
        return self.value


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    @property
    def status(self) -> int:
        return self.kind.status


Result = Union[Ok[T], Err]
