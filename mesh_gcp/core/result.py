from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Resolution(Generic[T]):
    """Outcome of a lookup that may legitimately come up empty."""

    value: Optional[T] = None
    reason: Optional[str] = None

    @classmethod
    def resolved(cls, value: T) -> "Resolution[T]":
        return cls(value=value)

    @classmethod
    def unresolved(cls, reason: str) -> "Resolution[T]":
        return cls(reason=reason)

    @property
    def ok(self) -> bool:
        return self.reason is None

    def __bool__(self) -> bool:
        return self.ok
