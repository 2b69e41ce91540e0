"""Explicit outcome type for best-effort fetches."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Value read by a fetch together with the error that cut it short, if any.

    ``found`` is False when the result had no rows to read, which is not an
    error. When ``error`` is set, ``value`` holds whatever was read before the
    failure (``None`` for single values, a partial list for multi-row fetches).
    """

    value: Optional[T] = None
    error: Optional[BaseException] = None
    found: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Optional[T]:
        """Return the value, re-raising the captured error instead when present."""
        if self.error is not None:
            raise self.error
        return self.value

    def value_or(self, default: Any) -> Any:
        if self.error is not None or self.value is None:
            return default
        return self.value
