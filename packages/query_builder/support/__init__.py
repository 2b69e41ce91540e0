"""Support utilities for query_builder."""
from .timing import DurationTimer, format_duration

__all__ = ["DurationTimer", "format_duration"]
