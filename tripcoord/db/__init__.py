from tripcoord.db.store import (
    Collections,
    DocumentStore,
    RedisDocumentStore,
    close_store,
    open_store,
)

__all__ = [
    "Collections",
    "DocumentStore",
    "RedisDocumentStore",
    "close_store",
    "open_store",
]
