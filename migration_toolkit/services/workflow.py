"""Workflow state transitions of language variants."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from ..errors import InvalidCodenameError, ManagementApiError
from ..models.environment import Workflow, WorkflowStep
from .migration_logger import LogType, MigrationLogger

logger = logging.getLogger(__name__)


class StepCategory(str, Enum):
    """Logical category of a workflow step."""
    PUBLISHED = "published"
    SCHEDULED = "scheduled"
    ARCHIVED = "archived"
    REGULAR = "regular"


def step_category(workflow: Workflow, step_codename: str) -> StepCategory:
    if step_codename == workflow.published_step.codename:
        return StepCategory.PUBLISHED
    if step_codename == workflow.scheduled_step.codename:
        return StepCategory.SCHEDULED
    if step_codename == workflow.archived_step.codename:
        return StepCategory.ARCHIVED
    return StepCategory.REGULAR


def get_workflow_and_step(
    workflows: List[Workflow],
    workflow_codename: str,
    step_codename: str,
) -> Tuple[Workflow, WorkflowStep]:
    """
    Find a workflow and one of its steps by codename.

    Raises:
        InvalidCodenameError: If the workflow or the step does not exist
    """
    workflow = next((w for w in workflows if w.codename.lower() == workflow_codename.lower()), None)
    if not workflow:
        raise InvalidCodenameError("workflow", workflow_codename, [w.codename for w in workflows])

    step = workflow.find_step_by_codename(step_codename)
    if not step:
        raise InvalidCodenameError(
            "workflow step",
            step_codename,
            [s.codename for s in workflow.all_steps()],
            context=f"in workflow '{workflow.codename}'",
        )
    return workflow, step


@dataclass
class VariantTarget:
    """Identifies the language variant being transitioned."""
    item_codename: str
    language_codename: str

    def __str__(self) -> str:
        return f"{self.item_codename} ({self.language_codename})"


class WorkflowService:
    """Drives a language variant to the workflow step recorded in the package."""

    def __init__(self, client, migration_logger: MigrationLogger):
        self.client = client
        self.log = migration_logger

    async def set_workflow_of_language_variant(
        self,
        target: VariantTarget,
        workflow_codename: str,
        step_codename: str,
        workflows: List[Workflow],
        current_step_codename: Optional[str] = None,
    ) -> StepCategory:
        """
        Move a language variant to the given workflow step.

        Args:
            target: Item and language of the variant
            workflow_codename: Codename of the target workflow
            step_codename: Codename of the target step
            workflows: Workflows of the target environment
            current_step_codename: Step the variant is currently in, if known

        Returns:
            The category of the target step
        """
        workflow, step = get_workflow_and_step(workflows, workflow_codename, step_codename)
        category = step_category(workflow, step.codename)

        if category == StepCategory.PUBLISHED:
            await self.client.publish_language_variant(target.item_codename, target.language_codename)
            self.log.log(LogType.PUBLISH, str(target))

        elif category == StepCategory.SCHEDULED:
            self.log.log(
                LogType.SKIP,
                f"Scheduling is not supported, leaving {target} in its current step",
            )

        elif category == StepCategory.ARCHIVED:
            try:
                await self.client.unpublish_language_variant(target.item_codename, target.language_codename)
                self.log.log(LogType.UNPUBLISH, str(target))
            except ManagementApiError as e:
                # the variant may simply not be published
                self.log.log(LogType.INFO, f"Could not unpublish {target}: {e}")

            await self.client.change_workflow_of_language_variant(
                target.item_codename, target.language_codename, workflow.codename, step.codename
            )
            self.log.log(LogType.ARCHIVE, str(target))

        elif step.codename in (workflow.codename, current_step_codename):
            logger.debug(f"{target} is already in step '{step.codename}'")

        else:
            await self.client.change_workflow_of_language_variant(
                target.item_codename, target.language_codename, workflow.codename, step.codename
            )
            self.log.log(LogType.CHANGE_WORKFLOW_STEP, f"{target} -> {step.codename}")

        return category
