"""Tests for id/codename reference resolution."""

import pytest

from migration_toolkit.errors import InvalidCodenameError, MissingReferenceError
from migration_toolkit.models.environment import Asset, ContentItem
from migration_toolkit.models.record import ImportedData
from migration_toolkit.services.reference_resolver import (
    AssetState,
    ExportReferenceResolver,
    ImportReferenceResolver,
    ItemState,
    ReferenceKind,
    default_external_id_generator,
)

EXISTING = ContentItem(id="target-existing", name="Existing", codename="existing_item", type={"id": "type-article"})
IMPORTED = ContentItem(id="target-imported", name="Imported", codename="imported_item", type={"id": "type-article"})
PHOTO = Asset(id="target-photo", codename="author_photo", file_name="jane.jpg")


@pytest.fixture
def export_resolver(metadata):
    items = {"item-1": ContentItem(id="item-1", name="One", codename="item_one", type={"id": "type-article"})}
    return ExportReferenceResolver(
        metadata,
        lambda id: ItemState(id, items.get(id)),
        lambda id: AssetState(id),
    )


@pytest.fixture
def import_resolver(metadata):
    return ImportReferenceResolver(
        metadata,
        ImportedData().with_content_items({"imported_item": IMPORTED}),
        existing_items={"existing_item": EXISTING},
        existing_assets={"author_photo": PHOTO},
    )


class TestExternalIds:
    def test_stable_and_case_insensitive(self):
        external_id = default_external_id_generator("Coffee_Article")

        assert external_id == default_external_id_generator("coffee_article")
        assert external_id.startswith("migration_")
        assert len(external_id) == len("migration_") + 32

    def test_distinct_codenames_differ(self):
        assert default_external_id_generator("a") != default_external_id_generator("b")


class TestExportReferenceResolver:
    def test_item(self, export_resolver):
        assert export_resolver.codename_of("item-1", ReferenceKind.ITEM) == "item_one"

    def test_missing_item_raises(self, export_resolver):
        with pytest.raises(MissingReferenceError) as exc_info:
            export_resolver.codename_of("item-2", ReferenceKind.ITEM)

        assert exc_info.value.identifier == "item-2"

    def test_missing_asset_raises(self, export_resolver):
        with pytest.raises(MissingReferenceError):
            export_resolver.codename_of("asset-1", ReferenceKind.ASSET)

    def test_option_and_nested_term(self, export_resolver, metadata):
        article = metadata.get_content_type_by_codename("article")

        color = article.get_element_by_codename("color")
        topics = article.get_element_by_codename("topics")

        assert export_resolver.codename_of("id2", ReferenceKind.MULTIPLE_CHOICE_OPTION, color) == "blue"
        assert export_resolver.codename_of("term-coffee", ReferenceKind.TAXONOMY_TERM, topics) == "coffee"

    def test_metadata_kinds(self, export_resolver):
        assert export_resolver.codename_of("col-blog", ReferenceKind.COLLECTION) == "blog"
        assert export_resolver.codename_of("lang-es", ReferenceKind.LANGUAGE) == "es-ES"
        assert export_resolver.codename_of("step-review", ReferenceKind.WORKFLOW_STEP) == "review"


class TestImportReferenceResolver:
    def test_imported_item_referenced_by_id(self, import_resolver):
        assert import_resolver.reference_of("imported_item", ReferenceKind.ITEM) == {"id": "target-imported"}

    def test_existing_item_referenced_by_id(self, import_resolver):
        assert import_resolver.reference_of("Existing_Item", ReferenceKind.ITEM) == {"id": "target-existing"}

    def test_unknown_item_referenced_by_external_id(self, import_resolver):
        assert import_resolver.reference_of("later_item", ReferenceKind.ITEM) == {
            "external_id": default_external_id_generator("later_item")
        }

    def test_unknown_asset_is_none(self, import_resolver):
        assert import_resolver.reference_of("author_photo", ReferenceKind.ASSET) == {"id": "target-photo"}
        assert import_resolver.reference_of("ghost_image", ReferenceKind.ASSET) is None

    def test_missing_option_names_element(self, import_resolver, metadata):
        color = metadata.get_content_type_by_codename("article").get_element_by_codename("color")

        with pytest.raises(MissingReferenceError, match="in element 'color'"):
            import_resolver.reference_of("green", ReferenceKind.MULTIPLE_CHOICE_OPTION, color)

    def test_missing_term_raises(self, import_resolver, metadata):
        topics = metadata.get_content_type_by_codename("article").get_element_by_codename("topics")

        assert import_resolver.reference_of("tea", ReferenceKind.TAXONOMY_TERM, topics) == {"id": "term-tea"}
        with pytest.raises(MissingReferenceError):
            import_resolver.reference_of("juice", ReferenceKind.TAXONOMY_TERM, topics)

    def test_invalid_collection_lists_available(self, import_resolver):
        with pytest.raises(InvalidCodenameError) as exc_info:
            import_resolver.reference_of("archive", ReferenceKind.COLLECTION)

        assert str(exc_info.value) == "Invalid collection 'archive'. Available collections are (2): default, blog"

    def test_workflow_step(self, import_resolver):
        assert import_resolver.reference_of("review", ReferenceKind.WORKFLOW_STEP) == {"codename": "review"}
        with pytest.raises(InvalidCodenameError, match="Invalid workflow step 'ghost'"):
            import_resolver.reference_of("ghost", ReferenceKind.WORKFLOW_STEP)
