"""Configuration dataclasses for query_builder."""
from .config import DatabaseConfig, QueryBuilderConfig

__all__ = ["DatabaseConfig", "QueryBuilderConfig"]
