"""httpx-backed client for the Discovery REST API.

Everything goes through the v1 collection endpoints except training query
creation, which targets the v2 project when the connection declares v2.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from wds_toolkit.domain import ApiVersion, ConnectionInfo
from wds_toolkit.exceptions import ConflictError, TransientRemoteError

from .auth import Authenticator, build_authenticator
from .models import DocumentUpload, QueryParams

DEFAULT_TIMEOUT_SECONDS = 60.0

logger = logging.getLogger(__name__)


class HttpDiscoveryClient:
    """Adapter for a single collection of a Discovery v1 environment."""

    def __init__(
        self,
        info: ConnectionInfo,
        *,
        client: httpx.AsyncClient | None = None,
        authenticator: Authenticator | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._info = info
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            verify=not info.disable_ssl_verification,
        )
        self._authenticator = authenticator or build_authenticator(info)
        self.collection_id = info.collection_id

    @property
    def info(self) -> ConnectionInfo:
        return self._info

    @property
    def _collection_path(self) -> str:
        return (
            f"/v1/environments/{self._info.environment_id}"
            f"/collections/{self._info.collection_id}"
        )

    @property
    def _training_queries_path(self) -> str:
        if self._info.api_version == ApiVersion.V2:
            project_id = self._info.project_id or self._info.environment_id
            return f"/v2/projects/{project_id}/training_data/queries"
        return f"{self._collection_path}/training_data"

    async def get_collection(self) -> dict[str, Any]:
        return await self._request("GET", self._collection_path)

    async def count(self, filter: str | None = None) -> int:
        params = QueryParams(filter=filter, count=0).to_params()
        payload = await self._request(
            "GET",
            f"{self._collection_path}/query",
            params=params,
            headers={"X-Watson-Logging-Opt-Out": "true"},
        )
        return int(payload.get("matching_results") or 0)

    async def query(self, params: QueryParams) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"{self._collection_path}/query",
            params=params.to_params(),
            headers={"X-Watson-Logging-Opt-Out": "true"},
        )

    async def query_notices(self, filter: str | None = None, count: int = 10_000) -> dict[str, Any]:
        params: dict[str, Any] = {"count": count}
        if filter:
            params["filter"] = filter
        return await self._request("GET", f"{self._collection_path}/notices", params=params)

    async def query_logs(
        self,
        filter: str | None = None,
        count: int = 10_000,
        offset: int = 0,
        sort: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"count": count, "offset": offset}
        if filter:
            params["filter"] = filter
        if sort:
            params["sort"] = sort
        return await self._request("GET", "/v1/logs", params=params)

    async def add_document(self, upload: DocumentUpload) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"{self._collection_path}/documents",
            **self._upload_parts(upload),
        )

    async def update_document(self, document_id: str, upload: DocumentUpload) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"{self._collection_path}/documents/{document_id}",
            **self._upload_parts(upload),
        )

    async def delete_document(self, document_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"{self._collection_path}/documents/{document_id}")

    async def list_training_data(self) -> dict[str, Any]:
        return await self._request("GET", f"{self._collection_path}/training_data")

    async def get_training_query(self, query_id: str) -> dict[str, Any]:
        return await self._request("GET", f"{self._collection_path}/training_data/{query_id}")

    async def add_training_query(self, body: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request(
            "POST",
            self._training_queries_path,
            json=dict(body),
        )

    async def delete_training_example(self, query_id: str, example_id: str) -> dict[str, Any]:
        return await self._request(
            "DELETE",
            f"{self._collection_path}/training_data/{query_id}/examples/{example_id}",
        )

    async def delete_all_training_data(self) -> dict[str, Any]:
        return await self._request("DELETE", f"{self._collection_path}/training_data")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpDiscoveryClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _upload_parts(self, upload: DocumentUpload) -> dict[str, Any]:
        files: dict[str, Any] = {
            "file": (upload.filename or "document", upload.content, upload.content_type),
        }
        data: dict[str, str] = {}
        if upload.metadata is not None:
            data["metadata"] = json.dumps(dict(upload.metadata))
        return {"files": files, "data": data}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        query = {"version": self._info.version}
        if params:
            query.update(params)
        request_headers = {
            "Accept": "application/json",
            "Authorization": await self._authenticator.authorization(self._client),
        }
        if headers:
            request_headers.update(headers)
        url = f"{self._info.base_url}{path}"
        try:
            response = await self._client.request(
                method,
                url,
                params=query,
                headers=request_headers,
                **kwargs,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise _classify(exc) from exc
        except httpx.HTTPError as exc:
            msg = f"{method} {path} failed: {exc}"
            raise TransientRemoteError(msg) from exc
        if not response.content:
            return {}
        payload = response.json()
        return payload if isinstance(payload, dict) else {"results": payload}


def _classify(exc: httpx.HTTPStatusError) -> TransientRemoteError | ConflictError:
    status = exc.response.status_code
    detail = _error_detail(exc.response)
    msg = f"request failed with status {status}: {detail}"
    if status == httpx.codes.CONFLICT:
        return ConflictError(msg, status_code=status)
    return TransientRemoteError(msg, status_code=status)


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(payload, dict):
        return str(payload.get("error") or payload.get("message") or response.reason_phrase)
    return response.reason_phrase


__all__ = ["DEFAULT_TIMEOUT_SECONDS", "HttpDiscoveryClient"]
