"""Async client for the content Management API."""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from ..errors import ManagementApiError, NotFoundError
from ..models.environment import (
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
from ..models.migration import EnvironmentConfig

logger = logging.getLogger(__name__)


class ManagementClient:
    """
    Thin async wrapper around the Management API endpoints used by the toolkit.

    Handles:
    - Bearer authentication
    - Transport level retries
    - Continuation token pagination
    - Mapping error responses to ManagementApiError / NotFoundError
    """

    def __init__(
        self,
        config: EnvironmentConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Environment connection settings
            transport: Optional transport (tests pass an httpx.MockTransport)
        """
        self.config = config
        self.environment_id = config.environment_id
        base_url = f"{config.base_url.rstrip('/')}/projects/{config.environment_id}/"

        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"

        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=config.timeout,
            transport=transport or httpx.AsyncHTTPTransport(retries=config.max_retries),
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ManagementClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # Low level helpers

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        logger.debug(f"{method} {path}")
        response = await self._client.request(
            method, path, json=json, params=params, headers=headers, content=content
        )
        if response.is_error:
            raise self._to_error(response)
        return response

    @staticmethod
    def _to_error(response: httpx.Response) -> ManagementApiError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get("message") or f"HTTP {response.status_code} for {response.request.url}"
        error_class = NotFoundError if response.status_code == 404 else ManagementApiError
        return error_class(
            message,
            status_code=response.status_code,
            error_code=body.get("error_code"),
            request_id=body.get("request_id"),
            validation_errors=body.get("validation_errors"),
        )

    async def _get_json(self, path: str) -> Any:
        response = await self._request("GET", path)
        return response.json()

    async def _list_all(self, path: str, key: str) -> List[Dict[str, Any]]:
        """Fetch every page of a paginated listing endpoint."""
        results: List[Dict[str, Any]] = []
        continuation: Optional[str] = None

        while True:
            headers = {"x-continuation": continuation} if continuation else None
            response = await self._request("GET", path, headers=headers)
            body = response.json()

            if isinstance(body, list):
                results.extend(body)
                break

            results.extend(body.get(key, []))
            continuation = (body.get("pagination") or {}).get("continuation_token")
            if not continuation:
                break

        return results

    @staticmethod
    def _item_path(codename: str) -> str:
        return f"items/codename/{quote(codename)}"

    @classmethod
    def _variant_path(cls, item_codename: str, language_codename: str) -> str:
        return f"{cls._item_path(item_codename)}/variants/codename/{quote(language_codename)}"

    # Environment metadata

    async def list_collections(self) -> List[Collection]:
        body = await self._get_json("collections")
        return [Collection.model_validate(c) for c in body.get("collections", [])]

    async def list_workflows(self) -> List[Workflow]:
        body = await self._get_json("workflows")
        return [Workflow.model_validate(w) for w in body]

    async def list_languages(self) -> List[Language]:
        return [Language.model_validate(language) for language in await self._list_all("languages", "languages")]

    async def list_taxonomies(self) -> List[Taxonomy]:
        return [Taxonomy.model_validate(t) for t in await self._list_all("taxonomies", "taxonomies")]

    async def list_content_types(self) -> List[ContentType]:
        return [ContentType.model_validate(t) for t in await self._list_all("types", "types")]

    async def list_snippets(self) -> List[ContentTypeSnippet]:
        return [ContentTypeSnippet.model_validate(s) for s in await self._list_all("snippets", "snippets")]

    # Content items

    async def view_content_item(self, codename: str) -> ContentItem:
        return ContentItem.model_validate(await self._get_json(self._item_path(codename)))

    async def view_content_item_by_id(self, item_id: str) -> ContentItem:
        return ContentItem.model_validate(await self._get_json(f"items/{item_id}"))

    async def add_content_item(self, data: Dict[str, Any]) -> ContentItem:
        response = await self._request("POST", "items", json=data)
        return ContentItem.model_validate(response.json())

    async def upsert_content_item(self, codename: str, data: Dict[str, Any]) -> ContentItem:
        response = await self._request("PUT", self._item_path(codename), json=data)
        return ContentItem.model_validate(response.json())

    # Language variants

    async def view_language_variant(self, item_codename: str, language_codename: str) -> LanguageVariant:
        body = await self._get_json(self._variant_path(item_codename, language_codename))
        return LanguageVariant.model_validate(body)

    async def view_published_language_variant(
        self, item_codename: str, language_codename: str
    ) -> LanguageVariant:
        body = await self._get_json(f"{self._variant_path(item_codename, language_codename)}/published")
        return LanguageVariant.model_validate(body)

    async def upsert_language_variant(
        self, item_codename: str, language_codename: str, elements: List[Dict[str, Any]]
    ) -> LanguageVariant:
        response = await self._request(
            "PUT",
            self._variant_path(item_codename, language_codename),
            json={"elements": elements},
        )
        return LanguageVariant.model_validate(response.json())

    async def publish_language_variant(self, item_codename: str, language_codename: str) -> None:
        await self._request("PUT", f"{self._variant_path(item_codename, language_codename)}/publish")

    async def unpublish_language_variant(self, item_codename: str, language_codename: str) -> None:
        await self._request("PUT", f"{self._variant_path(item_codename, language_codename)}/unpublish")

    async def change_workflow_of_language_variant(
        self,
        item_codename: str,
        language_codename: str,
        workflow_codename: str,
        step_codename: str,
    ) -> None:
        await self._request(
            "PUT",
            f"{self._variant_path(item_codename, language_codename)}/change-workflow",
            json={
                "workflow_identifier": {"codename": workflow_codename},
                "step_identifier": {"codename": step_codename},
            },
        )

    async def create_new_version(self, item_codename: str, language_codename: str) -> None:
        await self._request("PUT", f"{self._variant_path(item_codename, language_codename)}/new-version")

    # Assets

    async def view_asset(self, codename: str) -> Asset:
        return Asset.model_validate(await self._get_json(f"assets/codename/{quote(codename)}"))

    async def view_asset_by_id(self, asset_id: str) -> Asset:
        return Asset.model_validate(await self._get_json(f"assets/{asset_id}"))

    async def upload_binary_file(self, filename: str, data: bytes, content_type: str) -> Dict[str, Any]:
        """Upload a binary file and return its file reference."""
        response = await self._request(
            "POST",
            f"files/{quote(filename)}",
            content=data,
            headers={"Content-Type": content_type or "application/octet-stream"},
        )
        return response.json()

    async def add_asset(self, data: Dict[str, Any]) -> Asset:
        response = await self._request("POST", "assets", json=data)
        return Asset.model_validate(response.json())

    async def upsert_asset(self, codename: str, data: Dict[str, Any]) -> Asset:
        response = await self._request("PUT", f"assets/codename/{quote(codename)}", json=data)
        return Asset.model_validate(response.json())

    async def download_binary(self, url: str) -> bytes:
        """Download an asset binary from its delivery URL."""
        url = url.replace("#", "%23")
        request = self._client.build_request("GET", url)
        # delivery URLs are public; do not leak the management key
        request.headers.pop("Authorization", None)
        response = await self._client.send(request)
        if response.is_error:
            raise self._to_error(response)
        return response.content
