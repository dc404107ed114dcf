"""Infrastructure layer for unitask.

Wraps persistence behind transactional stores, with Result monads at the
file I/O boundary.

Exports:
    Storage:
        - JsonStorage: Low-level JSON file I/O
        - InMemoryStore: Lock-guarded store with savepoint transactions
        - JsonFileStore: InMemoryStore persisted to a revisioned JSON file
        - StoreState: The serialized store document
"""

from unitask.infrastructure.storage import (
    InMemoryStore,
    JsonFileStore,
    JsonStorage,
    StoreState,
)

__all__ = [
    "JsonStorage",
    "InMemoryStore",
    "JsonFileStore",
    "StoreState",
]
