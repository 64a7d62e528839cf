"""Tests for workflow step transitions."""

import pytest

from migration_toolkit.errors import InvalidCodenameError
from migration_toolkit.services.migration_logger import LogType
from migration_toolkit.services.workflow import (
    StepCategory,
    VariantTarget,
    WorkflowService,
    get_workflow_and_step,
    step_category,
)

from tests.fixtures import FakeManagementClient, make_workflows

TARGET = VariantTarget("article_one", "en-US")


def _client_with_variant(step_id: str) -> FakeManagementClient:
    client = FakeManagementClient()
    client.seed_item("article_one", "type-article")
    client.seed_variant("article_one", "en-US", [], step_id=step_id)
    return client


async def _move(client, step: str, migration_logger, current: str = None) -> StepCategory:
    service = WorkflowService(client, migration_logger)
    return await service.set_workflow_of_language_variant(
        TARGET, "default", step, client.workflows, current_step_codename=current
    )


class TestStepCategory:
    def test_categorizes_special_steps(self):
        workflow = make_workflows()[0]
        assert step_category(workflow, "published") == StepCategory.PUBLISHED
        assert step_category(workflow, "scheduled") == StepCategory.SCHEDULED
        assert step_category(workflow, "archived") == StepCategory.ARCHIVED
        assert step_category(workflow, "review") == StepCategory.REGULAR

    def test_unknown_workflow_lists_available(self):
        with pytest.raises(InvalidCodenameError, match=r"Available workflows are \(1\): default"):
            get_workflow_and_step(make_workflows(), "ghost", "draft")

    def test_unknown_step_lists_available(self):
        with pytest.raises(InvalidCodenameError) as exc_info:
            get_workflow_and_step(make_workflows(), "default", "ghost")

        assert exc_info.value.codename == "ghost"
        assert set(exc_info.value.valid) == {"draft", "review", "published", "scheduled", "archived"}
        assert "in workflow 'default'" in str(exc_info.value)


class TestWorkflowService:
    async def test_publishes(self, migration_logger):
        client = _client_with_variant("step-draft")

        category = await _move(client, "published", migration_logger, current="draft")

        assert category == StepCategory.PUBLISHED
        assert client.calls == [("publish_language_variant", "article_one", "en-US")]
        assert migration_logger.events_of(LogType.PUBLISH)[0].message == "article_one (en-US)"

    async def test_archives_unpublished_variant(self, migration_logger):
        client = _client_with_variant("step-draft")

        category = await _move(client, "archived", migration_logger, current="draft")

        assert category == StepCategory.ARCHIVED
        assert [c[0] for c in client.calls] == ["unpublish_language_variant", "change_workflow"]
        assert client.calls[1][3:] == ("default", "archived")
        assert "Could not unpublish" in migration_logger.events_of(LogType.INFO)[0].message
        assert migration_logger.events_of(LogType.ARCHIVE)
        assert not migration_logger.events_of(LogType.ERROR)

    async def test_archives_published_variant(self, migration_logger):
        client = _client_with_variant("step-published")

        await _move(client, "archived", migration_logger, current="published")

        assert [c[0] for c in client.calls] == ["unpublish_language_variant", "change_workflow"]
        assert migration_logger.events_of(LogType.UNPUBLISH)
        assert ("article_one", "en-US") not in client.published
        assert client.variants[("article_one", "en-US")].step_id == "step-archived"

    async def test_scheduled_step_is_skipped(self, migration_logger):
        client = _client_with_variant("step-draft")

        category = await _move(client, "scheduled", migration_logger, current="draft")

        assert category == StepCategory.SCHEDULED
        assert client.calls == []
        assert "Scheduling is not supported" in migration_logger.events_of(LogType.SKIP)[0].message

    async def test_current_step_is_left_alone(self, migration_logger):
        client = _client_with_variant("step-review")

        category = await _move(client, "review", migration_logger, current="review")

        assert category == StepCategory.REGULAR
        assert client.calls == []

    async def test_moves_to_regular_step(self, migration_logger):
        client = _client_with_variant("step-draft")

        await _move(client, "review", migration_logger, current="draft")

        assert client.calls == [("change_workflow", "article_one", "en-US", "default", "review")]
        assert migration_logger.events_of(LogType.CHANGE_WORKFLOW_STEP)[0].message == "article_one (en-US) -> review"

    async def test_invalid_step_makes_no_calls(self, migration_logger):
        client = _client_with_variant("step-draft")

        with pytest.raises(InvalidCodenameError):
            await _move(client, "ghost", migration_logger)

        assert client.calls == []
