"""
HTTP Review Repository — review records in a remote REST document store.

Endpoints (relative to base_url):
    GET  /reviews/{word_id}      -> record, 404 if never reviewed
    POST /reviews:batchGet       {"ids": [...]} -> {"records": {id: record}}
    PUT  /reviews/{word_id}      record
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from wordwise.domain.constants import REQUEST_TIMEOUT
from wordwise.domain.review.ports import RepositoryError, ReviewStateRepository


class HttpReviewRepository(ReviewStateRepository):
    """Adapter for a document store reachable over HTTP."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
            self._client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT, headers=headers)
        return self._client

    async def get(self, word_id: str) -> dict[str, Any] | None:
        resp = await self._request("GET", self._review_path(word_id))
        if resp.status_code == 404:
            return None
        return self._json_object(resp)

    async def get_many(self, word_ids: list[str]) -> dict[str, dict[str, Any]]:
        if not word_ids:
            return {}
        resp = await self._request("POST", "/reviews:batchGet", json={"ids": word_ids})
        records = self._json_object(resp).get("records", {})
        if not isinstance(records, dict):
            raise RepositoryError("Batch response 'records' is not a JSON object")
        return records

    async def set(self, word_id: str, record: dict[str, Any]) -> None:
        await self._request("PUT", self._review_path(word_id), json=record)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _review_path(word_id: str) -> str:
        # IDs are opaque; "/", "?" and "#" must not change the resource
        return f"/reviews/{quote(word_id, safe='')}"

    def _json_object(self, resp: httpx.Response) -> dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as e:
            self.logger.error(f"{resp.request.method} {resp.request.url} returned invalid JSON: {e}")
            raise RepositoryError(f"Invalid JSON from {resp.request.url}: {e}") from e
        if not isinstance(data, dict):
            raise RepositoryError(f"Expected a JSON object from {resp.request.url}")
        return data

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            resp = await self._get_client().request(method, url, **kwargs)
        except httpx.HTTPError as e:
            self.logger.error(f"{method} {url} failed: {e}")
            raise RepositoryError(f"{method} {url} failed: {e}") from e

        if resp.status_code == 404 and method == "GET":
            return resp
        if resp.status_code >= 400:
            self.logger.error(f"{method} {url} returned HTTP {resp.status_code}")
            raise RepositoryError(f"{method} {url} returned HTTP {resp.status_code}")
        return resp
