"""Tests for the in-process repositories (snapshot isolation, optimistic concurrency)."""

import pytest

from flowdash.domain.enums import WorkflowStatus
from flowdash.domain.exceptions import ConcurrencyConflictException
from flowdash.domain.value_objects import UserId, WorkflowId

from tests.conftest import OTHER_USER, OWNER


class TestWorkflowRepository:
    async def test_save_assigns_ids_and_version(self, workflow_repo, make_workflow) -> None:
        first, second = make_workflow(name="a"), make_workflow(name="b")
        await workflow_repo.save(first)
        await workflow_repo.save(second)
        assert (first.id, second.id) == (WorkflowId(1), WorkflowId(2))
        assert first.version == 1

    async def test_reads_are_isolated_copies(self, workflow_repo, make_workflow) -> None:
        workflow = make_workflow()
        await workflow_repo.save(workflow)
        workflow.update_details("changed locally", "")
        loaded = await workflow_repo.find_by_id(workflow.id)
        assert loaded.name == "Daily report"
        assert loaded is not await workflow_repo.find_by_id(workflow.id)

    async def test_stale_update_conflicts(self, workflow_repo, make_workflow) -> None:
        workflow = make_workflow()
        await workflow_repo.save(workflow)
        first = await workflow_repo.find_by_id(workflow.id)
        second = await workflow_repo.find_by_id(workflow.id)

        first.activate()
        await workflow_repo.update(first)
        second.update_details("late writer", "")

        with pytest.raises(ConcurrencyConflictException) as exc_info:
            await workflow_repo.update(second)
        assert exc_info.value.details["expected_version"] == 1
        stored = await workflow_repo.find_by_id(workflow.id)
        assert stored.status == WorkflowStatus.ACTIVE
        assert stored.version == 2

    async def test_update_unsaved_fails(self, workflow_repo, make_workflow) -> None:
        with pytest.raises(ValueError, match="never saved"):
            await workflow_repo.update(make_workflow())

    async def test_update_deleted_conflicts(self, workflow_repo, make_workflow) -> None:
        workflow = make_workflow()
        await workflow_repo.save(workflow)
        await workflow_repo.delete(workflow.id)
        with pytest.raises(ConcurrencyConflictException):
            await workflow_repo.update(workflow)

    async def test_stored_snapshot_has_no_pending_events(
        self, workflow_repo, make_workflow
    ) -> None:
        workflow = make_workflow()
        workflow.activate()
        await workflow_repo.save(workflow)
        assert len(workflow.domain_events) == 1
        assert (await workflow_repo.find_by_id(workflow.id)).domain_events == ()

    async def test_counts(self, workflow_repo, save_active_workflow, make_workflow) -> None:
        await save_active_workflow()
        await workflow_repo.save(make_workflow())
        await workflow_repo.save(make_workflow(user_id=OTHER_USER))
        assert await workflow_repo.count_by_user_id(OWNER) == 2
        assert await workflow_repo.count_active_by_user_id(OWNER) == 1
        assert len(await workflow_repo.find_by_status(WorkflowStatus.DRAFT)) == 2
        assert len(await workflow_repo.find_all()) == 3

    async def test_find_active_by_user_id(
        self, workflow_repo, save_active_workflow, make_workflow
    ) -> None:
        active = await save_active_workflow(name="Live")
        await save_active_workflow(name="Foreign", user_id=OTHER_USER)
        await workflow_repo.save(make_workflow(name="Draft"))

        found = await workflow_repo.find_active_by_user_id(OWNER)

        assert [w.id for w in found] == [active.id]
        assert await workflow_repo.find_active_by_user_id(UserId(99)) == []


class TestConnectedAppRepository:
    async def test_connected_and_catalog_views(self, app_repo, save_app) -> None:
        await save_app("Slack")
        await save_app("Gmail", connected=False)
        await save_app("Catalog", user_id=None, connected=False)
        assert [a.name for a in await app_repo.find_connected_by_user_id(OWNER)] == ["Slack"]
        assert [a.name for a in await app_repo.find_available()] == ["Catalog"]
        assert [a.name for a in await app_repo.search_by_name("MAIL")] == ["Gmail"]


class TestTemplateRepository:
    async def test_popular_ignores_inactive(self, template_repo, save_template) -> None:
        await save_template("Hot", users_count=900, active=False)
        await save_template("Warm", users_count=10)
        await save_template("Cold")
        assert [t.name for t in await template_repo.find_popular(5)] == ["Warm", "Cold"]
