"""Output container filled by the builder's column fetches."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from query_builder.database.types import TypeSpec, cast


@dataclass
class Column:
    """One output column.

    ``fetch_one_into`` overwrites ``value``; ``fetch_all_into`` appends to
    ``values`` in result order. When ``value_type`` is set, written values are
    converted with :func:`query_builder.database.types.cast`.
    """

    value_type: Optional[TypeSpec] = None
    value: Any = None
    values: List[Any] = field(default_factory=list)

    def set(self, raw: Any) -> Any:
        self.value = self.convert(raw)
        return self.value

    def add(self, raw: Any) -> Any:
        converted = self.convert(raw)
        self.values.append(converted)
        return converted

    def clear(self) -> None:
        self.value = None
        self.values.clear()

    def convert(self, raw: Any) -> Any:
        """Return ``raw`` converted to ``value_type`` without storing it."""
        if self.value_type is None:
            return raw
        return cast(raw, self.value_type)

    def __len__(self) -> int:
        return len(self.values)
