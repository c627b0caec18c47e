"""Tagged results for fetch paths."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

OK = "ok"
EMPTY = "empty"
ERROR = "error"


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of a read: data, nothing, or an error message for the screen."""

    state: str
    data: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, data: T) -> FetchResult[T]:
        if not data:
            return cls(state=EMPTY, data=data)
        return cls(state=OK, data=data)

    @classmethod
    def failure(cls, message: str) -> FetchResult[T]:
        return cls(state=ERROR, error=message)

    @property
    def ok(self) -> bool:
        return self.state != ERROR

    @property
    def is_empty(self) -> bool:
        return self.state == EMPTY
