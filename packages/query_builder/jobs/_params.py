"""Helpers shared by the query jobs."""
from __future__ import annotations

import re
from typing import Any, List, Sequence

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


def parse_param(raw: str) -> Any:
    """Type a command-line parameter by its literal form.

    Integers and floats become numbers, ``true``/``false`` booleans, ``null``
    None. Everything else stays a string; quote-wrap a value to force a string.
    """
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("'", '"'):
        return raw[1:-1]
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered == "null":
        return None
    if _INT_RE.match(raw):
        return int(raw)
    if _FLOAT_RE.match(raw):
        return float(raw)
    return raw


def parse_params(raw_values: Sequence[str]) -> List[Any]:
    return [parse_param(v) for v in raw_values or []]
