"""Linkwarden API client — thin async wrapper over the REST API (httpx)."""
import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Dict, Optional

import httpx

from .errors import ConfigurationError
from .models import (
    CreateCollectionBody,
    CreateLinkBody,
    DeleteLinksBody,
    GetLinksParams,
    PublicCollectionLinksParams,
    PublicCollectionTagsParams,
    SearchLinksParams,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT = 30.0


@dataclass
class ApiResponse:
    """Status plus body of one API call. `data` is only set for a JSON 200."""
    status_code: int
    reason: str = ""
    data: Any = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    @property
    def status(self) -> str:
        return f"{self.status_code} {self.reason}".strip()


def _reason(status_code: int, reason: str) -> str:
    if reason:
        return reason
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""


class LinkwardenClient:
    """Authenticated client for one Linkwarden instance.

    Holds no per-call state, so one instance serves every tool call.
    Transport failures surface as `httpx.HTTPError`.
    """

    def __init__(self, base_url: str, token: str, timeout: float = DEFAULT_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        if not base_url:
            raise ConfigurationError("linkwarden base url is required")
        if not token:
            raise ConfigurationError("linkwarden token is required")
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    async def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                       json_body: Any = None) -> ApiResponse:
        url = f"{API_PREFIX}{path}"
        resp = await self._http.request(method, url, params=params or None, json=json_body)
        logger.debug(f"{method} {url} -> {resp.status_code}")

        data = None
        if resp.status_code == 200 and "json" in resp.headers.get("content-type", ""):
            try:
                data = resp.json()
            except ValueError:
                logger.warning(f"{method} {url}: response is not valid JSON")
        return ApiResponse(
            status_code=resp.status_code,
            reason=_reason(resp.status_code, resp.reason_phrase),
            data=data,
            text=resp.text,
        )

    # search

    async def search_links(self, params: SearchLinksParams) -> ApiResponse:
        return await self._request("GET", "/search", params=params.to_api())

    # links

    async def get_links(self, params: GetLinksParams) -> ApiResponse:
        return await self._request("GET", "/links", params=params.to_api())

    async def get_link(self, link_id: int) -> ApiResponse:
        return await self._request("GET", f"/links/{link_id}")

    async def create_link(self, body: CreateLinkBody) -> ApiResponse:
        return await self._request("POST", "/links", json_body=body.to_api())

    async def delete_link(self, link_id: int) -> ApiResponse:
        return await self._request("DELETE", f"/links/{link_id}")

    async def delete_links(self, body: DeleteLinksBody) -> ApiResponse:
        return await self._request("DELETE", "/links", json_body=body.to_api())

    async def archive_link(self, link_id: int) -> ApiResponse:
        return await self._request("PUT", f"/links/{link_id}/archive")

    # collections

    async def get_collections(self) -> ApiResponse:
        return await self._request("GET", "/collections")

    async def get_collection(self, collection_id: int) -> ApiResponse:
        return await self._request("GET", f"/collections/{collection_id}")

    async def create_collection(self, body: CreateCollectionBody) -> ApiResponse:
        return await self._request("POST", "/collections", json_body=body.to_api())

    async def delete_collection(self, collection_id: int) -> ApiResponse:
        return await self._request("DELETE", f"/collections/{collection_id}")

    async def get_public_collection_links(self, params: PublicCollectionLinksParams) -> ApiResponse:
        return await self._request("GET", "/public/collections/links", params=params.to_api())

    async def get_public_collection_tags(self, params: PublicCollectionTagsParams) -> ApiResponse:
        return await self._request("GET", "/public/collections/tags", params=params.to_api())

    async def get_public_collection(self, collection_id: int) -> ApiResponse:
        return await self._request("GET", f"/public/collections/{collection_id}")

    # tags

    async def get_tags(self) -> ApiResponse:
        return await self._request("GET", "/tags")

    async def delete_tag(self, tag_id: int) -> ApiResponse:
        return await self._request("DELETE", f"/tags/{tag_id}")
