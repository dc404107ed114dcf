"""Tests for JSON persistence and optimistic concurrency."""

import json
from pathlib import Path

from unitask.application import Workspace
from unitask.domain.shared import ConcurrencyConflictError, Err, Ok, unwrap
from unitask.infrastructure.storage import JsonFileStore, JsonStorage

from conftest import ACTOR


def open_store(path: Path) -> JsonFileStore:
    return unwrap(JsonFileStore.open(path))


class TestJsonStorage:
    def test_roundtrip(self, tmp_path: Path) -> None:
        storage = JsonStorage()
        path = tmp_path / "nested" / "doc.json"

        assert isinstance(storage.save_json(path, {"revision": 3, "x": [1, 2]}), Ok)
        assert storage.load_json(path).value == {"revision": 3, "x": [1, 2]}
        assert storage.read_revision(path).value == 3

    def test_missing_file(self, tmp_path: Path) -> None:
        storage = JsonStorage()
        assert isinstance(storage.load_json(tmp_path / "none.json"), Err)
        assert storage.read_revision(tmp_path / "none.json").value == 0

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        result = JsonStorage().load_json(path)
        assert isinstance(result, Err)
        assert "Invalid JSON" in result.error

    def test_non_object_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert isinstance(JsonStorage().load_json(path), Err)


class TestJsonFileStore:
    def test_missing_file_opens_empty(self, tmp_path: Path) -> None:
        store = open_store(tmp_path / "store.json")
        assert store.tasks.count() == 0
        assert not (tmp_path / "store.json").exists()

    def test_persist_and_reopen(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        workspace = Workspace(open_store(path))
        parent = unwrap(workspace.tasks.create_task({"title": "Parent"}, ACTOR))
        child = unwrap(workspace.tasks.create_task({"title": "Child", "parent_task_id": parent.id}, ACTOR))

        reopened = Workspace(open_store(path))

        assert unwrap(reopened.tasks.get_task(child.id)).parent_task_id == parent.id
        assert len(unwrap(reopened.history.for_task(parent.id))) == 1
        assert json.loads(path.read_text(encoding="utf-8"))["revision"] == 2

    def test_stale_writer_gets_conflict(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        first = Workspace(open_store(path))
        second = Workspace(open_store(path))

        unwrap(first.tasks.create_task({"title": "From first"}, ACTOR))
        result = second.tasks.create_task({"title": "From second"}, ACTOR)

        assert isinstance(result.error, ConcurrencyConflictError)
        assert second.store.tasks.count() == 0

        unwrap(second.store.reload())
        unwrap(second.tasks.create_task({"title": "Retried"}, ACTOR))
        titles = {t.title for t in Workspace(open_store(path)).tasks.list_tasks()}
        assert titles == {"From first", "Retried"}

    def test_invalid_store_file(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"tasks": {"x": {"title": ""}}}), encoding="utf-8")

        result = JsonFileStore.open(path)

        assert isinstance(result, Err)
        assert "Invalid store data" in result.error

    def test_no_op_leaves_file_untouched(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        workspace = Workspace(open_store(path))
        task = unwrap(workspace.tasks.create_task({"title": "Steady"}, ACTOR))
        before = path.read_text(encoding="utf-8")

        unwrap(workspace.tasks.update_task(task.id, {"title": "Steady"}, ACTOR))
        unwrap(workspace.tasks.transition_status(task.id, "pending", ACTOR))
        unwrap(workspace.tasks.set_parent(task.id, None, ACTOR))

        assert path.read_text(encoding="utf-8") == before
        assert json.loads(before)["revision"] == 1

    def test_no_op_on_stale_store_is_not_a_conflict(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        first = Workspace(open_store(path))
        task = unwrap(first.tasks.create_task({"title": "Shared"}, ACTOR))
        second = Workspace(open_store(path))
        unwrap(first.tasks.create_task({"title": "Newer"}, ACTOR))

        result = second.tasks.update_task(task.id, {"title": "Shared"}, ACTOR)

        assert isinstance(result, Ok)
