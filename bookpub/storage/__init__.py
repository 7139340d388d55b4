"""Content store and typed repository."""

from bookpub.storage.content_store import ContentStore, NodeRef, SqliteContentStore
from bookpub.storage.database import get_connection, initialize_database
from bookpub.storage.repository import TitleRepository

__all__ = [
    "ContentStore",
    "NodeRef",
    "SqliteContentStore",
    "TitleRepository",
    "get_connection",
    "initialize_database",
]
