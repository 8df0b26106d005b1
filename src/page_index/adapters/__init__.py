"""Adapters - persistence of the inverted index."""

from page_index.adapters.database import IndexDatabase
from page_index.adapters.repository import AbstractIndexStore
from page_index.adapters.sqlite_store import SqliteIndexStore


__all__ = ["AbstractIndexStore", "IndexDatabase", "SqliteIndexStore"]
