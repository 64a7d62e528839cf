"""Pydantic models for Management API payloads."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class Reference(BaseModel):
    id: Optional[str] = None
    codename: Optional[str] = None
    external_id: Optional[str] = None


class Collection(BaseModel):
    id: str
    name: str = ""
    codename: str


class Language(BaseModel):
    id: str
    name: str = ""
    codename: str
    is_active: bool = True
    is_default: bool = False


class WorkflowStep(BaseModel):
    id: str
    name: str = ""
    codename: str


class Workflow(BaseModel):
    id: str
    name: str = ""
    codename: str
    steps: List[WorkflowStep] = Field(default_factory=list)
    published_step: WorkflowStep
    scheduled_step: WorkflowStep
    archived_step: WorkflowStep

    def all_steps(self) -> List[WorkflowStep]:
        """Regular steps followed by the published, scheduled and archived steps."""
        return [*self.steps, self.published_step, self.scheduled_step, self.archived_step]

    def find_step_by_id(self, step_id: Optional[str]) -> Optional[WorkflowStep]:
        for step in self.all_steps():
            if step.id == step_id:
                return step
        return None

    def find_step_by_codename(self, codename: str) -> Optional[WorkflowStep]:
        for step in self.all_steps():
            if step.codename == codename:
                return step
        return None


class Taxonomy(BaseModel):
    id: str
    name: str = ""
    codename: str
    terms: List["Taxonomy"] = Field(default_factory=list)

    def find_term_by_id(self, term_id: str) -> Optional["Taxonomy"]:
        """Search the term tree (including this node) by id."""
        if self.id == term_id:
            return self
        for term in self.terms:
            found = term.find_term_by_id(term_id)
            if found:
                return found
        return None

    def find_term_by_codename(self, codename: str) -> Optional["Taxonomy"]:
        if self.codename == codename:
            return self
        for term in self.terms:
            found = term.find_term_by_codename(codename)
            if found:
                return found
        return None


class MultipleChoiceOption(BaseModel):
    id: str
    name: str = ""
    codename: Optional[str] = None


class ContentTypeElement(BaseModel):
    id: Optional[str] = None
    codename: Optional[str] = None
    name: str = ""
    type: str
    options: List[MultipleChoiceOption] = Field(default_factory=list)
    taxonomy_group: Optional[Reference] = None
    snippet: Optional[Reference] = None


class ContentType(BaseModel):
    id: str
    name: str = ""
    codename: str
    elements: List[ContentTypeElement] = Field(default_factory=list)


class ContentTypeSnippet(BaseModel):
    id: str
    name: str = ""
    codename: str
    elements: List[ContentTypeElement] = Field(default_factory=list)


class ContentItem(BaseModel):
    id: str
    name: str
    codename: str
    type: Reference
    collection: Reference = Field(default_factory=Reference)
    external_id: Optional[str] = None


class VariantComponent(BaseModel):
    id: str
    type: Reference
    elements: List["VariantElement"] = Field(default_factory=list)


class VariantElement(BaseModel):
    element: Reference
    value: Any = None
    components: List[VariantComponent] = Field(default_factory=list)
    mode: Optional[str] = None
    display_timezone: Optional[str] = None


class VariantWorkflow(BaseModel):
    workflow_identifier: Reference
    step_identifier: Reference


class LanguageVariant(BaseModel):
    item: Reference
    language: Reference
    elements: List[VariantElement] = Field(default_factory=list)
    workflow: Optional[VariantWorkflow] = None
    workflow_step: Optional[Reference] = None

    @property
    def workflow_id(self) -> Optional[str]:
        return self.workflow.workflow_identifier.id if self.workflow else None

    @property
    def step_id(self) -> Optional[str]:
        if self.workflow:
            return self.workflow.step_identifier.id
        if self.workflow_step:
            return self.workflow_step.id
        return None


class AssetCollection(BaseModel):
    reference: Optional[Reference] = None


class AssetDescription(BaseModel):
    language: Reference
    description: Optional[str] = None


class Asset(BaseModel):
    id: str
    codename: str
    file_name: str
    title: Optional[str] = None
    size: int = 0
    type: str = ""
    url: str = ""
    external_id: Optional[str] = None
    collection: Optional[AssetCollection] = None
    descriptions: List[AssetDescription] = Field(default_factory=list)
    file_reference: Optional[Dict[str, Any]] = None

    @property
    def collection_id(self) -> Optional[str]:
        if self.collection and self.collection.reference:
            return self.collection.reference.id
        return None


Taxonomy.model_rebuild()
VariantComponent.model_rebuild()
