"""Test data builders and an in-memory Management API."""

import itertools
from typing import Any, Dict, List, Optional, Tuple

from migration_toolkit.errors import ManagementApiError, NotFoundError
from migration_toolkit.models.environment import (
    Asset,
    Collection,
    ContentItem,
    ContentType,
    ContentTypeSnippet,
    Language,
    LanguageVariant,
    Taxonomy,
    Workflow,
)
from migration_toolkit.services.content_types import EnvironmentMetadata, flatten_content_types

COMPONENT_ID = "0b3c7e4a-1f2d-4c5b-8a9e-6d7f8a9b0c1d"


def make_collections() -> List[Collection]:
    return [
        Collection(id="col-default", codename="default", name="Default"),
        Collection(id="col-blog", codename="blog", name="Blog"),
    ]


def make_languages() -> List[Language]:
    return [
        Language(id="lang-en", codename="en-US", name="English", is_default=True),
        Language(id="lang-es", codename="es-ES", name="Spanish"),
    ]


def make_workflows() -> List[Workflow]:
    return [Workflow.model_validate({
        "id": "wf-default",
        "codename": "default",
        "name": "Default",
        "steps": [
            {"id": "step-draft", "codename": "draft", "name": "Draft"},
            {"id": "step-review", "codename": "review", "name": "Review"},
        ],
        "published_step": {"id": "step-published", "codename": "published", "name": "Published"},
        "scheduled_step": {"id": "step-scheduled", "codename": "scheduled", "name": "Scheduled"},
        "archived_step": {"id": "step-archived", "codename": "archived", "name": "Archived"},
    })]


def make_taxonomies() -> List[Taxonomy]:
    return [Taxonomy.model_validate({
        "id": "tax-topics",
        "codename": "topics",
        "terms": [
            {
                "id": "term-drinks",
                "codename": "drinks",
                "terms": [
                    {"id": "term-coffee", "codename": "coffee", "terms": []},
                    {"id": "term-tea", "codename": "tea", "terms": []},
                ],
            },
        ],
    })]


def make_snippets() -> List[ContentTypeSnippet]:
    return [ContentTypeSnippet.model_validate({
        "id": "snippet-seo",
        "codename": "seo",
        "elements": [
            {"id": "el-meta-title", "codename": "meta_title", "type": "text"},
            {"id": "el-seo-guide", "codename": "seo_guide", "type": "guidelines"},
        ],
    })]


def make_content_types() -> List[ContentType]:
    return [
        ContentType.model_validate({
            "id": "type-article",
            "codename": "article",
            "elements": [
                {"id": "el-title", "codename": "title", "type": "text"},
                {"id": "el-body", "codename": "body", "type": "rich_text"},
                {
                    "id": "el-color",
                    "codename": "color",
                    "type": "multiple_choice",
                    "options": [
                        {"id": "id1", "codename": "red", "name": "Red"},
                        {"id": "id2", "codename": "blue", "name": "Blue"},
                    ],
                },
                {"id": "el-related", "codename": "related", "type": "modular_content"},
                {"id": "el-hero", "codename": "hero", "type": "asset"},
                {
                    "id": "el-topics",
                    "codename": "topics",
                    "type": "taxonomy",
                    "taxonomy_group": {"id": "tax-topics"},
                },
                {"id": "el-published", "codename": "published_on", "type": "date_time"},
                {"id": "el-slug", "codename": "slug", "type": "url_slug"},
                {"id": "el-rating", "codename": "rating", "type": "number"},
                {"type": "snippet", "snippet": {"id": "snippet-seo"}},
                {"id": "el-guide", "codename": "guide", "type": "guidelines"},
            ],
        }),
        ContentType.model_validate({
            "id": "type-author",
            "codename": "author",
            "elements": [
                {"id": "el-name", "codename": "name", "type": "text"},
                {"id": "el-photo", "codename": "photo", "type": "asset"},
            ],
        }),
        ContentType.model_validate({
            "id": "type-callout",
            "codename": "callout",
            "elements": [
                {"id": "el-callout-text", "codename": "text", "type": "text"},
                {"id": "el-callout-image", "codename": "image", "type": "asset"},
            ],
        }),
    ]


def make_metadata() -> EnvironmentMetadata:
    return EnvironmentMetadata(
        collections=make_collections(),
        languages=make_languages(),
        workflows=make_workflows(),
        taxonomies=make_taxonomies(),
        content_types=flatten_content_types(make_content_types(), make_snippets()),
    )


class FakeManagementClient:
    """
    In-memory stand-in for ManagementClient.

    Keeps items, variants and assets keyed by codename and records every
    write call in `calls` as (method, *args) tuples.
    """

    def __init__(self):
        self.collections = make_collections()
        self.languages = make_languages()
        self.workflows = make_workflows()
        self.taxonomies = make_taxonomies()
        self.types = make_content_types()
        self.snippets = make_snippets()

        self.items: Dict[str, ContentItem] = {}
        self.variants: Dict[Tuple[str, str], LanguageVariant] = {}
        self.published: Dict[Tuple[str, str], LanguageVariant] = {}
        self.assets: Dict[str, Asset] = {}
        self.binaries: Dict[str, bytes] = {}
        self.files: Dict[str, Tuple[str, int]] = {}
        self.calls: List[Tuple[Any, ...]] = []
        self.closed = False
        self._ids = itertools.count(1)

    # Test helpers

    def calls_to(self, method: str) -> List[Tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == method]

    def clear_calls(self) -> None:
        self.calls = []

    def _new_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    @property
    def _workflow(self) -> Workflow:
        return self.workflows[0]

    def _step_id(self, codename: str) -> str:
        return self._workflow.find_step_by_codename(codename).id

    def _current_step_id(self, key: Tuple[str, str]) -> Optional[str]:
        variant = self.variants.get(key)
        return variant.step_id if variant else None

    def _set_step(self, key: Tuple[str, str], step_id: str) -> None:
        data = self.variants[key].model_dump()
        data["workflow"] = {
            "workflow_identifier": {"id": self._workflow.id},
            "step_identifier": {"id": step_id},
        }
        self.variants[key] = LanguageVariant.model_validate(data)

    def _collection_id(self, codename: str) -> str:
        return next(c.id for c in self.collections if c.codename == codename)

    def _language_id(self, codename: str) -> str:
        return next(l.id for l in self.languages if l.codename == codename)

    def seed_item(
        self,
        codename: str,
        type_id: str,
        name: Optional[str] = None,
        item_id: Optional[str] = None,
        collection_id: str = "col-default",
    ) -> ContentItem:
        item = ContentItem(
            id=item_id or self._new_id("item"),
            name=name or codename.replace("_", " ").title(),
            codename=codename,
            type={"id": type_id},
            collection={"id": collection_id},
        )
        self.items[codename] = item
        return item

    def seed_variant(
        self,
        item_codename: str,
        language_codename: str,
        elements: List[Dict[str, Any]],
        step_id: str = "step-draft",
        published_elements: Optional[List[Dict[str, Any]]] = None,
    ) -> LanguageVariant:
        item = self.items[item_codename]
        variant = LanguageVariant.model_validate({
            "item": {"id": item.id},
            "language": {"id": self._language_id(language_codename)},
            "elements": elements,
            "workflow": {
                "workflow_identifier": {"id": self._workflow.id},
                "step_identifier": {"id": step_id},
            },
        })
        key = (item_codename, language_codename)
        self.variants[key] = variant
        if step_id == "step-published":
            self.published[key] = variant
        elif published_elements is not None:
            self.published[key] = LanguageVariant.model_validate({
                "item": {"id": item.id},
                "language": {"id": self._language_id(language_codename)},
                "elements": published_elements,
                "workflow": {
                    "workflow_identifier": {"id": self._workflow.id},
                    "step_identifier": {"id": "step-published"},
                },
            })
        return variant

    def seed_asset(
        self,
        codename: str,
        file_name: str,
        data: bytes,
        asset_id: Optional[str] = None,
        title: Optional[str] = None,
        collection_id: Optional[str] = "col-default",
        descriptions: Optional[List[Dict[str, Any]]] = None,
    ) -> Asset:
        asset_id = asset_id or self._new_id("asset")
        url = f"https://assets.test/{asset_id}/{file_name}"
        asset = Asset.model_validate({
            "id": asset_id,
            "codename": codename,
            "file_name": file_name,
            "title": title,
            "size": len(data),
            "url": url,
            "collection": {"reference": {"id": collection_id}} if collection_id else None,
            "descriptions": descriptions or [],
            "file_reference": {"id": f"file-{asset_id}", "type": "internal"},
        })
        self.assets[codename] = asset
        self.binaries[url] = data
        return asset

    # Environment metadata

    async def list_collections(self) -> List[Collection]:
        return list(self.collections)

    async def list_workflows(self) -> List[Workflow]:
        return list(self.workflows)

    async def list_languages(self) -> List[Language]:
        return list(self.languages)

    async def list_taxonomies(self) -> List[Taxonomy]:
        return list(self.taxonomies)

    async def list_content_types(self) -> List[ContentType]:
        return list(self.types)

    async def list_snippets(self) -> List[ContentTypeSnippet]:
        return list(self.snippets)

    # Content items

    async def view_content_item(self, codename: str) -> ContentItem:
        if codename not in self.items:
            raise NotFoundError(f"Item '{codename}' not found", status_code=404)
        return self.items[codename]

    async def view_content_item_by_id(self, item_id: str) -> ContentItem:
        for item in self.items.values():
            if item.id == item_id:
                return item
        raise NotFoundError(f"Item '{item_id}' not found", status_code=404)

    async def add_content_item(self, data: Dict[str, Any]) -> ContentItem:
        self.calls.append(("add_content_item", data["codename"]))
        content_type = next(t for t in self.types if t.codename == data["type"]["codename"])
        item = ContentItem(
            id=self._new_id("item"),
            name=data["name"],
            codename=data["codename"],
            type={"id": content_type.id},
            collection={"id": self._collection_id(data["collection"]["codename"])},
            external_id=data.get("external_id"),
        )
        self.items[item.codename] = item
        return item

    async def upsert_content_item(self, codename: str, data: Dict[str, Any]) -> ContentItem:
        self.calls.append(("upsert_content_item", codename))
        current = self.items[codename].model_dump()
        current["name"] = data["name"]
        current["collection"] = {"id": self._collection_id(data["collection"]["codename"])}
        item = ContentItem.model_validate(current)
        self.items[codename] = item
        return item

    # Language variants

    async def view_language_variant(self, item_codename: str, language_codename: str) -> LanguageVariant:
        key = (item_codename, language_codename)
        if key not in self.variants:
            raise NotFoundError(f"Variant {key} not found", status_code=404)
        return self.variants[key]

    async def view_published_language_variant(self, item_codename: str, language_codename: str) -> LanguageVariant:
        key = (item_codename, language_codename)
        if key not in self.published:
            raise NotFoundError(f"Published variant {key} not found", status_code=404)
        return self.published[key]

    async def upsert_language_variant(
        self, item_codename: str, language_codename: str, elements: List[Dict[str, Any]]
    ) -> LanguageVariant:
        self.calls.append(("upsert_language_variant", item_codename, language_codename, elements))
        if item_codename not in self.items:
            raise NotFoundError(f"Item '{item_codename}' not found", status_code=404)

        key = (item_codename, language_codename)
        step_id = self._current_step_id(key) or self._workflow.steps[0].id
        if step_id in (self._workflow.published_step.id, self._workflow.archived_step.id):
            raise ManagementApiError(
                "The language variant is published or archived and cannot be modified",
                status_code=400,
                error_code=109,
            )

        self.variants[key] = LanguageVariant.model_validate({
            "item": {"id": self.items[item_codename].id},
            "language": {"id": self._language_id(language_codename)},
            "elements": elements,
            "workflow": {
                "workflow_identifier": {"id": self._workflow.id},
                "step_identifier": {"id": step_id},
            },
        })
        return self.variants[key]

    async def publish_language_variant(self, item_codename: str, language_codename: str) -> None:
        self.calls.append(("publish_language_variant", item_codename, language_codename))
        key = (item_codename, language_codename)
        self._set_step(key, self._workflow.published_step.id)
        self.published[key] = self.variants[key]

    async def unpublish_language_variant(self, item_codename: str, language_codename: str) -> None:
        self.calls.append(("unpublish_language_variant", item_codename, language_codename))
        key = (item_codename, language_codename)
        if key not in self.published:
            raise ManagementApiError("The language variant is not published", status_code=400, error_code=110)
        del self.published[key]
        self._set_step(key, self._workflow.archived_step.id)

    async def change_workflow_of_language_variant(
        self, item_codename: str, language_codename: str, workflow_codename: str, step_codename: str
    ) -> None:
        self.calls.append(("change_workflow", item_codename, language_codename, workflow_codename, step_codename))
        self._set_step((item_codename, language_codename), self._step_id(step_codename))

    async def create_new_version(self, item_codename: str, language_codename: str) -> None:
        self.calls.append(("create_new_version", item_codename, language_codename))
        key = (item_codename, language_codename)
        if self._current_step_id(key) != self._workflow.published_step.id:
            raise ManagementApiError("Only published variants can get a new version", status_code=400)
        self._set_step(key, self._workflow.steps[0].id)

    # Assets

    async def view_asset(self, codename: str) -> Asset:
        if codename not in self.assets:
            raise NotFoundError(f"Asset '{codename}' not found", status_code=404)
        return self.assets[codename]

    async def view_asset_by_id(self, asset_id: str) -> Asset:
        for asset in self.assets.values():
            if asset.id == asset_id:
                return asset
        raise NotFoundError(f"Asset '{asset_id}' not found", status_code=404)

    async def upload_binary_file(self, filename: str, data: bytes, content_type: str) -> Dict[str, Any]:
        self.calls.append(("upload_binary_file", filename, len(data), content_type))
        file_id = self._new_id("file")
        self.files[file_id] = (filename, len(data))
        self.binaries[f"https://assets.test/{file_id}/{filename}"] = data
        return {"id": file_id, "type": "internal"}

    def _asset_fields(self, data: Dict[str, Any]) -> Dict[str, Any]:
        file_id = data["file_reference"]["id"]
        file_name, size = self.files.get(file_id, (None, 0))
        fields = {"title": data.get("title"), "file_reference": data["file_reference"]}
        # omitted properties are left as they are
        if "collection" in data:
            fields["collection"] = None
            if data["collection"]:
                fields["collection"] = {
                    "reference": {"id": self._collection_id(data["collection"]["reference"]["codename"])}
                }
        if "descriptions" in data:
            fields["descriptions"] = [
                {"language": {"id": self._language_id(d["language"]["codename"])}, "description": d["description"]}
                for d in data["descriptions"]
            ]
        if file_name:
            fields.update({
                "file_name": file_name,
                "size": size,
                "url": f"https://assets.test/{file_id}/{file_name}",
            })
        return fields

    async def add_asset(self, data: Dict[str, Any]) -> Asset:
        self.calls.append(("add_asset", data["codename"]))
        asset = Asset.model_validate({
            "id": self._new_id("asset"),
            "codename": data["codename"],
            "external_id": data.get("external_id"),
            **self._asset_fields(data),
        })
        self.assets[asset.codename] = asset
        return asset

    async def upsert_asset(self, codename: str, data: Dict[str, Any]) -> Asset:
        self.calls.append(("upsert_asset", codename))
        current = self.assets[codename].model_dump()
        current.update(self._asset_fields(data))
        asset = Asset.model_validate(current)
        self.assets[codename] = asset
        return asset

    async def download_binary(self, url: str) -> bytes:
        if url not in self.binaries:
            raise NotFoundError(f"Binary '{url}' not found", status_code=404)
        return self.binaries[url]

    async def close(self) -> None:
        self.closed = True


def seed_source_environment(client: FakeManagementClient) -> FakeManagementClient:
    """
    Source environment with one article linking an author.

    The article's rich text embeds a callout component whose image is an
    asset referenced nowhere else.
    """
    client.seed_asset(
        "hero_image", "hero.png", b"hero-bytes", asset_id="asset-hero", title="Hero image",
        descriptions=[{"language": {"id": "lang-en"}, "description": "A cup of coffee"}],
    )
    client.seed_asset("callout_image", "callout.png", b"callout", asset_id="asset-callout")
    client.seed_asset("author_photo", "jane.jpg", b"jane", asset_id="asset-photo")

    client.seed_item("author_jane", "type-author", name="Jane", item_id="item-author")
    client.seed_variant("author_jane", "en-US", [
        {"element": {"id": "el-name"}, "value": "Jane Doe"},
        {"element": {"id": "el-photo"}, "value": [{"id": "asset-photo"}]},
    ], step_id="step-published")

    client.seed_item("coffee_article", "type-article", name="On coffee", item_id="item-article")
    client.seed_variant("coffee_article", "en-US", [
        {"element": {"id": "el-title"}, "value": "On coffee"},
        {
            "element": {"id": "el-body"},
            "value": (
                '<p>Written by <a data-item-id="item-author" href="">Jane</a></p>'
                '<object type="application/kenticocloud" data-type="item" data-id="item-author"></object>'
                f'<object type="application/kenticocloud" data-type="component" data-id="{COMPONENT_ID}"></object>'
                '<figure data-asset-id="asset-hero" data-image-id="asset-hero">'
                '<img src="https://assets.test/asset-hero/hero.png" data-asset-id="asset-hero" '
                'data-image-id="asset-hero"></figure>'
            ),
            "components": [{
                "id": COMPONENT_ID,
                "type": {"id": "type-callout"},
                "elements": [
                    {"element": {"id": "el-callout-text"}, "value": "Brew it hot"},
                    {"element": {"id": "el-callout-image"}, "value": [{"id": "asset-callout"}]},
                ],
            }],
        },
        {"element": {"id": "el-color"}, "value": [{"id": "id1"}]},
        {"element": {"id": "el-related"}, "value": [{"id": "item-author"}]},
        {"element": {"id": "el-hero"}, "value": [{"id": "asset-hero"}]},
        {"element": {"id": "el-topics"}, "value": [{"id": "term-coffee"}]},
        {
            "element": {"id": "el-published"},
            "value": "2024-01-02T03:04:05Z",
            "display_timezone": "Europe/Prague",
        },
        {"element": {"id": "el-slug"}, "value": "on-coffee", "mode": "custom"},
        {"element": {"id": "el-rating"}, "value": 4.5},
        {"element": {"id": "el-meta-title"}, "value": "Coffee | Blog"},
    ], step_id="step-published")

    return client
