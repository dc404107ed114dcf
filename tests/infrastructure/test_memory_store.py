"""Tests for the transactional in-memory store and its repositories."""

import pytest

from unitask.domain.shared import NotFoundError
from unitask.domain.task import Task
from unitask.infrastructure.storage import InMemoryStore


class TestTransactions:
    def test_write_outside_transaction_rejected(self, store: InMemoryStore) -> None:
        with pytest.raises(RuntimeError):
            store.tasks.save(Task(title="Loose"))

    def test_commit_bumps_revision(self, store: InMemoryStore) -> None:
        with store.transaction():
            store.tasks.save(Task(title="A"))
            with store.transaction():
                store.tasks.save(Task(title="B"))

        assert store.state.revision == 1
        assert store.tasks.count() == 2

    def test_read_only_transaction_commits_nothing(self, store: InMemoryStore) -> None:
        with store.transaction():
            store.tasks.count()

        assert store.state.revision == 0

    def test_exception_rolls_back(self, store: InMemoryStore) -> None:
        with pytest.raises(ValueError):
            with store.transaction():
                store.tasks.save(Task(title="Doomed"))
                raise ValueError("abort")

        assert store.tasks.count() == 0
        assert store.state.revision == 0
        assert not store.in_transaction

    def test_nested_level_is_a_savepoint(self, store: InMemoryStore) -> None:
        kept = Task(title="Kept")
        with store.transaction():
            store.tasks.save(kept)
            with pytest.raises(ValueError):
                with store.transaction():
                    store.tasks.save(Task(title="Inner"))
                    raise ValueError("inner abort")

        assert [t.id for t in store.tasks.all()] == [kept.id]


class TestTaskRepository:
    def test_returns_copies(self, store: InMemoryStore) -> None:
        task = Task(title="Original", tags=["a"])
        with store.transaction():
            store.tasks.save(task)

        fetched = store.tasks.require(task.id)
        fetched.tags.append("mutated")

        assert store.tasks.require(task.id).tags == ["a"]

    def test_deleted_hidden_unless_requested(self, store: InMemoryStore) -> None:
        task = Task(title="Gone")
        with store.transaction():
            store.tasks.save(task.model_copy(update={"deleted_at": task.created_at}))

        assert store.tasks.get(task.id) is None
        assert store.tasks.get(task.id, include_deleted=True) is not None
        with pytest.raises(NotFoundError):
            store.tasks.require(task.id)

    def test_children_in_creation_order(self, store: InMemoryStore) -> None:
        parent = Task(title="Parent")
        first = Task(title="First", parent_task_id=parent.id)
        second = Task(title="Second", parent_task_id=parent.id)
        with store.transaction():
            for task in (parent, first, second):
                store.tasks.save(task)

        assert store.tasks.children_of(parent.id) == [first.id, second.id]
        assert store.tasks.parent_of(first.id) == parent.id
        assert store.tasks.parent_of("ghost") is None
