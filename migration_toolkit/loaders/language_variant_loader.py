"""Imports language variants and drives them through their workflow."""

import logging
from typing import List, Optional, Tuple

from ..errors import InvalidCodenameError
from ..models.content import MigrationItem
from ..models.environment import LanguageVariant, Workflow
from ..models.record import ActionType, ImportedData, ImportedVariant, MigrationResult, RecordKind
from ..services.migration_logger import LogType
from ..services.rich_text import RichTextProcessor
from ..services.transformer import ElementTransformRegistry
from ..services.workflow import StepCategory, VariantTarget, WorkflowService, step_category
from .base import BaseLoader

logger = logging.getLogger(__name__)


class LanguageVariantLoader(BaseLoader[MigrationItem]):
    """
    Upserts the elements of every version and sets its workflow step.

    A published target variant gets a new version before it is written,
    an archived one is moved back to the first regular step.
    """

    entity = RecordKind.LANGUAGE_VARIANT

    def __init__(self, *args, registry: Optional[ElementTransformRegistry] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.registry = registry or ElementTransformRegistry()
        self.rich_text = RichTextProcessor(self.log)
        self.workflow_service = WorkflowService(self.client, self.log)

    def describe(self, record: MigrationItem) -> str:
        return f"{record.codename} ({record.language_codename})"

    def accumulate(self, imported_data: ImportedData, loaded: List[ImportedVariant]) -> ImportedData:
        return imported_data.with_language_variants(loaded)

    def _resolve_workflow(self, record: MigrationItem) -> Workflow:
        metadata = self.context.metadata
        if record.system.workflow:
            return metadata.get_workflow_by_codename(record.system.workflow.codename)

        step_codenames = [v.workflow_step.codename for v in record.versions if v.workflow_step]
        for workflow in metadata.workflows:
            if all(workflow.find_step_by_codename(c) for c in step_codenames):
                return workflow
        raise InvalidCodenameError(
            "workflow step",
            ", ".join(step_codenames),
            [s.codename for w in metadata.workflows for s in w.all_steps()],
            context=f"of item '{record.codename}'",
        )

    async def load_record(self, record: MigrationItem, imported_data: ImportedData) -> Tuple[MigrationResult, ImportedVariant]:
        metadata = self.context.metadata
        language = metadata.get_language_by_codename(record.language_codename)
        content_type = metadata.get_content_type_by_codename(record.system.type.codename)
        workflow = self._resolve_workflow(record)
        resolver = self.context.resolver(imported_data)

        target = VariantTarget(record.codename, language.codename)
        item_context = f" in item '{record.codename}' and language '{language.codename}'"
        logger.debug(f"Importing {len(record.versions)} version(s) of {target}")

        existing = self.context.get_existing_variant(record.codename, language.codename)
        current_step = self._step_codename(workflow, existing)
        variant: Optional[LanguageVariant] = existing

        for version in record.versions:
            await self._prepare_for_write(target, workflow, current_step)

            elements = self.registry.import_elements(
                version.elements,
                content_type,
                resolver,
                self.rich_text,
                self.log,
                item_context,
            )
            variant = await self.client.upsert_language_variant(record.codename, language.codename, elements)
            self.log.log(LogType.UPSERT, str(target))
            current_step = self._step_codename(workflow, variant) or self._first_step(workflow)

            if version.workflow_step:
                category = await self.workflow_service.set_workflow_of_language_variant(
                    target,
                    workflow.codename,
                    version.workflow_step.codename,
                    metadata.workflows,
                    current_step_codename=current_step,
                )
                if category != StepCategory.SCHEDULED:
                    current_step = version.workflow_step.codename

        action = ActionType.UPDATED if existing else ActionType.CREATED
        result = MigrationResult(
            RecordKind.LANGUAGE_VARIANT, record.codename, action, language=language.codename
        )
        return result, ImportedVariant(record.codename, language.codename, variant)

    async def _prepare_for_write(self, target: VariantTarget, workflow: Workflow, current_step: Optional[str]) -> None:
        """Make the variant editable before its elements are upserted."""
        if not current_step:
            return

        category = step_category(workflow, current_step)
        if category == StepCategory.PUBLISHED:
            await self.client.create_new_version(target.item_codename, target.language_codename)
            self.log.log(LogType.CREATE_NEW_VERSION, str(target))
        elif category == StepCategory.ARCHIVED:
            first_step = self._first_step(workflow)
            await self.client.change_workflow_of_language_variant(
                target.item_codename, target.language_codename, workflow.codename, first_step
            )
            self.log.log(LogType.CHANGE_WORKFLOW_STEP, f"{target} -> {first_step}")

    @staticmethod
    def _first_step(workflow: Workflow) -> str:
        return workflow.steps[0].codename if workflow.steps else workflow.published_step.codename

    @staticmethod
    def _step_codename(workflow: Workflow, variant: Optional[LanguageVariant]) -> Optional[str]:
        if not variant or not variant.step_id:
            return None
        step = workflow.find_step_by_id(variant.step_id)
        return step.codename if step else None
