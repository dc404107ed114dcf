"""Tests for template versioning and instantiation."""

from collections.abc import Callable
from datetime import timedelta

import pytest

from unitask.application import Workspace
from unitask.domain.dependency import DependencyType
from unitask.domain.history import HistoryAction
from unitask.domain.shared import (
    ConcurrencyConflictError,
    CyclicDependencyError,
    InactiveTemplateError,
    MissingVariableError,
    NotFoundError,
    Ok,
    UnresolvedBlueprintReferenceError,
    ValidationFailedError,
    unwrap,
)
from unitask.domain.task import Task, TaskPriority
from unitask.domain.template import Template
from unitask.infrastructure.storage import InMemoryStore

from conftest import ACTOR, FakeClock

SITE_SURVEY = [
    {"id": "t1", "title": "Prep {{site}}", "tags": ["{{site}}"]},
    {"id": "t2", "title": "Install {{site}}", "depends_on": "t1", "priority": "high"},
]
SITE_VARIABLES = [{"name": "site", "required": True}]


def task_count(workspace: Workspace) -> int:
    return len(workspace.tasks.list_tasks())


class TestInstantiate:
    def test_site_survey(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        template = make_template(SITE_SURVEY, variables=SITE_VARIABLES)

        result = unwrap(workspace.templates.instantiate(template.id, {"site": "Nairobi"}, ACTOR))

        assert [t.title for t in result.tasks] == ["Prep Nairobi", "Install Nairobi"]
        prep, install = result.tasks
        assert prep.tags == ["Nairobi"]
        assert install.priority == TaskPriority.HIGH
        [edge] = result.dependencies
        assert (edge.task_id, edge.depends_on_task_id) == (install.id, prep.id)
        assert result.task_id_map == {"t1": prep.id, "t2": install.id}
        assert install.metadata["created_from_template"] is True
        assert install.metadata["template_version"] == 1

    def test_created_history_names_template(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        template = make_template(SITE_SURVEY, variables=SITE_VARIABLES)
        result = unwrap(workspace.templates.instantiate(template.id, {"site": "Kisumu"}, ACTOR))

        [record] = unwrap(workspace.history.for_task(result.tasks[0].id, HistoryAction.CREATED))
        assert record.metadata == {"template_id": template.id}

    def test_missing_variable_creates_nothing(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        template = make_template(SITE_SURVEY, variables=SITE_VARIABLES)

        result = workspace.templates.instantiate(template.id, {}, ACTOR)

        assert isinstance(result.error, MissingVariableError)
        assert result.error.names == ["site"]
        assert task_count(workspace) == 0

    def test_counts_match_body(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        template = make_template(
            [{"id": f"b{i}", "title": f"Step {i}"} for i in range(5)],
            dependencies=[
                {"from_id": "b1", "to_id": "b0"},
                {"from_id": "b2", "to_id": "b1"},
                {"from_id": "b4", "to_id": "b0", "dependency_type": "relates_to"},
            ],
        )

        result = unwrap(workspace.templates.instantiate(template.id, None, ACTOR))

        assert len(result.tasks) == 5
        assert len(result.dependencies) == 3
        created = {t.id for t in result.tasks}
        for edge in result.dependencies:
            assert {edge.task_id, edge.depends_on_task_id} <= created
        assert result.dependencies[2].dependency_type == DependencyType.RELATES_TO

    def test_inactive_template(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        template = make_template([{"id": "t1", "title": "Only"}])
        unwrap(workspace.templates.create_new_version(template.id, {"description": "v2"}, ACTOR))

        result = workspace.templates.instantiate(template.id, {}, ACTOR)
        assert isinstance(result.error, InactiveTemplateError)

    def test_unknown_template(self, workspace: Workspace) -> None:
        result = workspace.templates.instantiate("ghost", {}, ACTOR)
        assert isinstance(result.error, NotFoundError)

    @pytest.mark.parametrize(
        "body",
        [
            {"tasks": [{"id": "t1", "title": "A", "depends_on": "t9"}]},
            {"tasks": [{"id": "t1", "title": "A", "parent_id": "t9"}]},
            {
                "tasks": [{"id": "t1", "title": "A"}],
                "dependencies": [{"from_id": "t9", "to_id": "t1"}],
            },
        ],
    )
    def test_unresolved_reference(
        self, workspace: Workspace, make_template: Callable[..., Template], body: dict
    ) -> None:
        template = make_template(body["tasks"], dependencies=body.get("dependencies", []))

        result = workspace.templates.instantiate(template.id, {}, ACTOR)

        assert isinstance(result.error, UnresolvedBlueprintReferenceError)
        assert result.error.blueprint_id == "t9"
        assert task_count(workspace) == 0

    def test_cyclic_body_rolls_back(
        self,
        workspace: Workspace,
        store: InMemoryStore,
        make_template: Callable[..., Template],
    ) -> None:
        template = make_template([
            {"id": "t1", "title": "A", "depends_on": "t2"},
            {"id": "t2", "title": "B", "depends_on": "t1"},
        ])
        history_before = store.history.count()

        result = workspace.templates.instantiate(template.id, {}, ACTOR)

        assert isinstance(result.error, CyclicDependencyError)
        assert task_count(workspace) == 0
        assert store.dependencies.all() == []
        assert store.history.count() == history_before

    def test_placeholders_without_values_kept(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        template = make_template([{"id": "t1", "title": "Visit {{site}}", "description": "on {{ date }}"}])

        [task] = unwrap(workspace.templates.instantiate(template.id, {}, ACTOR)).tasks

        assert task.title == "Visit {{site}}"
        assert task.description == "on {{ date }}"

    def test_default_priority(
        self, store: InMemoryStore, clock: FakeClock
    ) -> None:
        workspace = Workspace(store, clock=clock, default_priority=TaskPriority.LOW)
        template = unwrap(workspace.templates.create_template(
            {"name": "T", "body": {"tasks": [{"id": "t1", "title": "A"}]}}, ACTOR
        ))

        [task] = unwrap(workspace.templates.instantiate(template.id, {}, ACTOR)).tasks
        assert task.priority == TaskPriority.LOW

    def test_blueprint_parents(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        template = make_template([
            {"id": "child", "title": "Child", "parent_id": "root"},
            {"id": "root", "title": "Root"},
            {"id": "leaf", "title": "Leaf", "parent_id": "child"},
        ])

        result = unwrap(workspace.templates.instantiate(template.id, {}, ACTOR))

        ids = result.task_id_map
        by_id = {t.id: t for t in result.tasks}
        assert by_id[ids["child"]].parent_task_id == ids["root"]
        assert by_id[ids["leaf"]].parent_task_id == ids["child"]
        assert by_id[ids["root"]].parent_task_id is None

    def test_due_date_offset(
        self,
        workspace: Workspace,
        make_template: Callable[..., Template],
        clock: FakeClock,
    ) -> None:
        template = make_template([{"id": "t1", "title": "A", "due_date_offset_days": 3}])

        [task] = unwrap(workspace.templates.instantiate(template.id, {}, ACTOR)).tasks
        assert task.due_date == clock.now + timedelta(days=3)

    def test_context_applied_to_every_task(
        self,
        workspace: Workspace,
        make_template: Callable[..., Template],
        make_task: Callable[..., Task],
    ) -> None:
        project = make_task("Project")
        template = make_template(SITE_SURVEY, variables=SITE_VARIABLES)

        result = unwrap(workspace.templates.instantiate(
            template.id,
            {"site": "Eldoret"},
            ACTOR,
            context={
                "owner": {"owner_type": "project", "owner_id": "p-1"},
                "parent_task_id": project.id,
                "assignee_user_id": "ana",
                "metadata": {"batch": 7, "created_from_template": False},
            },
        ))

        for task in result.tasks:
            assert task.owner.owner_id == "p-1"
            assert task.parent_task_id == project.id
            assert task.metadata["batch"] == 7
            assert task.metadata["created_from_template"] is True
            assignee = unwrap(workspace.assignments.get_effective_assignee(task.id))
            assert (assignee.user_id, assignee.inherited) == ("ana", False)

    def test_unknown_context_parent_rolls_back(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        template = make_template(SITE_SURVEY, variables=SITE_VARIABLES)

        result = workspace.templates.instantiate(
            template.id, {"site": "Nakuru"}, ACTOR, context={"parent_task_id": "ghost"}
        )

        assert isinstance(result.error, NotFoundError)
        assert task_count(workspace) == 0


class TestVersions:
    def test_new_version_supersedes(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        v1 = make_template([{"id": "t1", "title": "A"}], name="Survey")

        v2 = unwrap(workspace.templates.create_new_version(v1.id, {"description": "second"}, ACTOR))

        assert (v2.version, v2.previous_version_id, v2.is_active) == (2, v1.id, True)
        assert v2.name == "Survey"
        assert v2.body == v1.body
        assert not unwrap(workspace.templates.get_template(v1.id)).is_active
        assert [t.id for t in workspace.templates.list_templates(active_only=True)] == [v2.id]

    def test_superseded_version_cannot_branch(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        v1 = make_template([{"id": "t1", "title": "A"}])
        unwrap(workspace.templates.create_new_version(v1.id, {}, ACTOR))

        result = workspace.templates.create_new_version(v1.id, {"name": "Fork"}, ACTOR)
        assert isinstance(result.error, ConcurrencyConflictError)

    def test_version_chain(self, workspace: Workspace, make_template: Callable[..., Template]) -> None:
        v1 = make_template([{"id": "t1", "title": "A"}])
        v2 = unwrap(workspace.templates.create_new_version(v1.id, {}, ACTOR))
        v3 = unwrap(workspace.templates.create_new_version(v2.id, {}, ACTOR))

        for start in (v1, v2, v3):
            chain = unwrap(workspace.templates.list_versions(start.id))
            assert [t.version for t in chain] == [1, 2, 3]

    def test_old_tasks_untouched_by_new_version(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        v1 = make_template([{"id": "t1", "title": "Old title"}])
        [task] = unwrap(workspace.templates.instantiate(v1.id, {}, ACTOR)).tasks

        unwrap(workspace.templates.create_new_version(
            v1.id, {"body": {"tasks": [{"id": "t1", "title": "New title"}]}}, ACTOR
        ))

        assert unwrap(workspace.tasks.get_task(task.id)).title == "Old title"

    def test_invalid_template_body(self, workspace: Workspace) -> None:
        result = workspace.templates.create_template(
            {"name": "Dup", "body": {"tasks": [{"id": "a", "title": "x"}, {"id": "a", "title": "y"}]}},
            ACTOR,
        )
        assert isinstance(result.error, ValidationFailedError)

    def test_create_template(self, workspace: Workspace) -> None:
        result = workspace.templates.create_template({"name": "Empty"}, ACTOR)
        assert isinstance(result, Ok)
        assert (result.value.version, result.value.is_active) == (1, True)

    def test_invalid_change_keeps_current_version(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        v1 = make_template([{"id": "t1", "title": "A"}])

        result = workspace.templates.create_new_version(v1.id, {"description": None}, ACTOR)

        assert isinstance(result.error, ValidationFailedError)
        assert unwrap(workspace.templates.get_template(v1.id)).is_active
        assert [t.id for t in workspace.templates.list_templates()] == [v1.id]

    def test_partial_change_copies_other_fields(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        v1 = make_template(
            [{"id": "t1", "title": "A"}],
            name="Survey",
            category="field",
            tags=["site"],
            variables=SITE_VARIABLES,
        )

        v2 = unwrap(workspace.templates.create_new_version(v1.id, {"name": "Survey II"}, ACTOR))

        assert v2.name == "Survey II"
        assert (v2.category, v2.tags, v2.variables) == ("field", ["site"], v1.variables)

    def test_category_can_be_cleared(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        v1 = make_template([{"id": "t1", "title": "A"}], category="field")

        v2 = unwrap(workspace.templates.create_new_version(v1.id, {"category": None}, ACTOR))
        assert v2.category is None


class TestListing:
    def test_category_filter(
        self, workspace: Workspace, make_template: Callable[..., Template]
    ) -> None:
        survey = make_template([], name="Survey", category="field")
        make_template([], name="Audit", category="office")

        listed = workspace.templates.list_templates(category="field")
        assert [t.id for t in listed] == [survey.id]

    def test_by_category_newest_active_first(
        self,
        workspace: Workspace,
        make_template: Callable[..., Template],
        clock: FakeClock,
    ) -> None:
        older = make_template([], name="Survey", category="field")
        clock.advance(hours=1)
        newer = make_template([], name="Install", category="field")
        clock.advance(hours=1)
        superseded = make_template([], name="Repair", category="field")
        clock.advance(hours=1)
        replacement = unwrap(workspace.templates.create_new_version(superseded.id, {}, ACTOR))

        by_category = workspace.templates.get_templates_by_category("field")

        assert [t.id for t in by_category] == [replacement.id, newer.id, older.id]
        assert workspace.templates.get_templates_by_category("office") == []
