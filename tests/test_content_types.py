"""Tests for content type flattening and metadata lookups."""

import pytest

from migration_toolkit.errors import (
    InvalidCodenameError,
    MissingContentTypeError,
    MissingElementError,
    SnippetReferenceError,
)
from migration_toolkit.models.environment import ContentType
from migration_toolkit.services.content_types import fetch_environment_metadata, flatten_content_types
from migration_toolkit.services.migration_logger import LogType

from tests.fixtures import FakeManagementClient, make_content_types, make_snippets


class TestFlattenContentTypes:
    def test_snippet_elements_are_inlined(self):
        article = flatten_content_types(make_content_types(), make_snippets())[0]

        codenames = [e.codename for e in article.elements]
        assert codenames == [
            "title", "body", "color", "related", "hero", "topics",
            "published_on", "slug", "rating", "meta_title",
        ]

    def test_guidelines_are_dropped(self):
        article = flatten_content_types(make_content_types(), make_snippets())[0]

        assert all(e.type != "guidelines" for e in article.elements)

    def test_element_details_are_kept(self):
        article = flatten_content_types(make_content_types(), make_snippets())[0]

        assert [o.codename for o in article.get_element_by_codename("color").options] == ["red", "blue"]
        assert article.get_element_by_codename("topics").taxonomy_group_id == "tax-topics"
        assert article.get_element_by_id("el-meta-title").type == "text"

    def test_missing_snippet_raises(self):
        broken = ContentType.model_validate({
            "id": "type-page",
            "codename": "page",
            "elements": [{"type": "snippet", "snippet": {"id": "snippet-gone"}}],
        })

        with pytest.raises(SnippetReferenceError, match="snippet-gone"):
            flatten_content_types([broken], make_snippets())

    def test_unknown_element_raises(self):
        article = flatten_content_types(make_content_types(), make_snippets())[0]

        with pytest.raises(MissingElementError, match="'ghost'"):
            article.get_element_by_codename("ghost")


class TestEnvironmentMetadata:
    async def test_fetches_everything(self, migration_logger):
        metadata = await fetch_environment_metadata(FakeManagementClient(), migration_logger)

        assert [t.codename for t in metadata.content_types] == ["article", "author", "callout"]
        assert [c.codename for c in metadata.collections] == ["default", "blog"]
        assert migration_logger.events_of(LogType.FETCH)

    def test_lookups_by_id_return_none(self, metadata):
        assert metadata.get_collection_by_id("col-gone") is None
        assert metadata.get_language_by_id("lang-gone") is None
        assert metadata.get_workflow_by_id("wf-gone") is None

    def test_lookups_by_codename_raise(self, metadata):
        with pytest.raises(InvalidCodenameError, match="Available languages are"):
            metadata.get_language_by_codename("de-DE")
        with pytest.raises(MissingContentTypeError, match="Available content types are: article, author, callout"):
            metadata.get_content_type_by_codename("page")

    def test_taxonomy_term_lookup_scoped_to_group(self, metadata):
        assert metadata.find_taxonomy_term_by_codename("tea", "tax-topics").id == "term-tea"
        assert metadata.find_taxonomy_term_by_id("term-drinks").codename == "drinks"
        assert metadata.find_taxonomy_term_by_codename("tea", "tax-gone") is None
