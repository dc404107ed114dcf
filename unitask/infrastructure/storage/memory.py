"""Transactional stores for the task graph.

``InMemoryStore`` keeps the whole graph in a single ``StoreState`` document
guarded by a re-entrant lock. Every ``transaction()`` level takes a
snapshot on entry and restores it if the block raises, so nested calls act
as savepoints and the outermost call commits or rolls back as one unit.

``JsonFileStore`` adds persistence: the outermost commit writes the state
to a JSON file, refusing to overwrite a file another process committed to
in the meantime.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from unitask.domain.assignment.models import Assignment
from unitask.domain.dependency.models import Dependency
from unitask.domain.history.models import HistoryRecord
from unitask.domain.shared.errors import ConcurrencyConflictError, StorageError
from unitask.domain.shared.result import Err, Ok, Result
from unitask.domain.task.models import Task
from unitask.domain.template.models import Template
from unitask.infrastructure.storage.json_storage import JsonStorage
from unitask.infrastructure.storage.repositories import (
    AssignmentRepository,
    DependencyRepository,
    HistoryRepository,
    TaskRepository,
    TemplateRepository,
)

logger = logging.getLogger(__name__)


class StoreState(BaseModel):
    """Everything the store holds, as one serializable document."""

    revision: int = 0
    tasks: dict[str, Task] = Field(default_factory=dict)
    dependencies: dict[str, Dependency] = Field(default_factory=dict)
    assignments: dict[str, Assignment] = Field(default_factory=dict)
    templates: dict[str, Template] = Field(default_factory=dict)
    history: list[HistoryRecord] = Field(default_factory=list)

    def snapshot(self) -> "StoreState":
        """Copy the containers but share the entities.

        Repositories replace entities instead of mutating them, so sharing
        them between snapshots is safe.
        """
        return StoreState.model_construct(
            revision=self.revision,
            tasks=dict(self.tasks),
            dependencies=dict(self.dependencies),
            assignments=dict(self.assignments),
            templates=dict(self.templates),
            history=list(self.history),
        )


class InMemoryStore:
    """Store keeping all records in memory.

    Example:
        store = InMemoryStore()
        with store.transaction():
            store.tasks.save(task)
    """

    def __init__(self, state: StoreState | None = None) -> None:
        self.state = state or StoreState()
        self._lock = threading.RLock()
        self._depth = 0
        self._dirty = False

        self.tasks = TaskRepository(self)
        self.dependencies = DependencyRepository(self)
        self.assignments = AssignmentRepository(self)
        self.templates = TemplateRepository(self)
        self.history = HistoryRepository(self)

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def ensure_writable(self) -> None:
        """Raise unless the calling code holds an open transaction.

        Repositories call this before every write, which marks the open
        transaction as having changes to commit.
        """
        if not self._depth:
            raise RuntimeError("Store writes require an open transaction")
        self._dirty = True

    @contextmanager
    def read(self) -> Iterator["InMemoryStore"]:
        """Hold the lock for a consistent multi-step read."""
        with self._lock:
            yield self

    @contextmanager
    def transaction(self) -> Iterator["InMemoryStore"]:
        """Run a block atomically.

        The lock is held for the whole block so validation and the writes it
        guards see the same graph. On any exception the state is restored to
        what it was when this level was entered and the exception propagates.
        A transaction that wrote nothing commits nothing.
        """
        with self._lock:
            savepoint = self.state.snapshot()
            if not self._depth:
                self._dirty = False
            self._depth += 1
            try:
                yield self
                if self._depth == 1 and self._dirty:
                    self._commit(savepoint)
            except BaseException:
                self.state = savepoint
                if self._depth == 1:
                    logger.debug("Transaction rolled back")
                raise
            finally:
                self._depth -= 1

    def _commit(self, base: StoreState) -> None:
        """Finish the outermost transaction."""
        self.state.revision = base.revision + 1


class JsonFileStore(InMemoryStore):
    """In-memory store backed by a JSON document on disk.

    The file carries a ``revision`` counter. A commit fails with
    ``ConcurrencyConflictError`` if the revision on disk is no longer the
    one this store loaded, meaning another writer got there first.
    """

    def __init__(
        self,
        path: Path,
        state: StoreState | None = None,
        storage: JsonStorage | None = None,
    ) -> None:
        super().__init__(state)
        self.path = path
        self._storage = storage or JsonStorage()

    @classmethod
    def open(cls, path: Path, storage: JsonStorage | None = None) -> Result["JsonFileStore", str]:
        """Load a store from ``path``; a missing file gives an empty store.

        Returns:
            Ok(JsonFileStore) if loaded, Err(str) if the file is unreadable.
        """
        storage = storage or JsonStorage()
        if not path.exists():
            return Ok(cls(path, StoreState(), storage))

        result = storage.load_json(path)
        if isinstance(result, Err):
            return result
        try:
            state = StoreState.model_validate(result.value)
        except ValidationError as e:
            return Err(f"Invalid store data in {path}: {e}")
        logger.debug(f"Loaded store {path} at revision {state.revision}")
        return Ok(cls(path, state, storage))

    def reload(self) -> Result[None, str]:
        """Replace the in-memory state with what is currently on disk."""
        result = JsonFileStore.open(self.path, self._storage)
        if isinstance(result, Err):
            return result
        with self._lock:
            self.state = result.value.state
        return Ok(None)

    def _commit(self, base: StoreState) -> None:
        on_disk = self._storage.read_revision(self.path)
        if isinstance(on_disk, Err):
            raise StorageError(on_disk.error)
        if on_disk.value != base.revision:
            raise ConcurrencyConflictError(
                f"Store {self.path} changed on disk (revision {on_disk.value}, "
                f"expected {base.revision}); reload and retry"
            )

        super()._commit(base)
        saved = self._storage.save_json(self.path, self.state.model_dump(mode="json"))
        if isinstance(saved, Err):
            raise StorageError(saved.error)
        logger.debug(f"Committed revision {self.state.revision} to {self.path}")
