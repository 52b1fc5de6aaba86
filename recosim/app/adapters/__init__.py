"""Concrete adapters wiring application ports to built-in implementations."""

from __future__ import annotations

from .hashing_vectorizer import HashingVectorizer
from .sqlite_store import SqliteRecordStore

__all__ = [
    "HashingVectorizer",
    "SqliteRecordStore",
]
