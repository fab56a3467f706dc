"""
Library sample schema and its in-memory data source
"""

from .schema import TYPE_DEFS, build_library_schema
from .store import LibraryStore

__all__ = ["TYPE_DEFS", "LibraryStore", "build_library_schema"]
