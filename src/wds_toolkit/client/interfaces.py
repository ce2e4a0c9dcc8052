"""Protocol implemented by Discovery collection clients."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from .models import DocumentUpload, QueryParams


@runtime_checkable
class DiscoveryClient(Protocol):
    """Remote operations against a single collection.

    Implementations raise ``TransientRemoteError`` for retryable failures and
    ``ConflictError`` when the target already exists.
    """

    collection_id: str

    async def get_collection(self) -> dict[str, Any]: ...

    async def count(self, filter: str | None = None) -> int: ...

    async def query(self, params: QueryParams) -> dict[str, Any]: ...

    async def query_notices(self, filter: str | None = None, count: int = 10_000) -> dict[str, Any]: ...

    async def query_logs(
        self,
        filter: str | None = None,
        count: int = 10_000,
        offset: int = 0,
        sort: str | None = None,
    ) -> dict[str, Any]: ...

    async def add_document(self, upload: DocumentUpload) -> dict[str, Any]: ...

    async def update_document(self, document_id: str, upload: DocumentUpload) -> dict[str, Any]: ...

    async def delete_document(self, document_id: str) -> dict[str, Any]: ...

    async def list_training_data(self) -> dict[str, Any]: ...

    async def get_training_query(self, query_id: str) -> dict[str, Any]: ...

    async def add_training_query(self, body: Mapping[str, Any]) -> dict[str, Any]: ...

    async def delete_training_example(self, query_id: str, example_id: str) -> dict[str, Any]: ...

    async def delete_all_training_data(self) -> dict[str, Any]: ...

    async def aclose(self) -> None: ...


__all__ = ["DiscoveryClient"]
