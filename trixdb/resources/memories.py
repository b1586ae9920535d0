import asyncio
from collections.abc import AsyncIterator, Mapping, Sequence
from typing import IO, Any

from trixdb.models import (
    BulkResult,
    CreateMemoryRequest,
    ListMemoriesRequest,
    Memory,
    PaginatedResponse,
    UpdateMemoryRequest,
)
from trixdb.resources.base import BaseResource, build_query_params, require_id


class MemoriesResource(BaseResource):
    """Create, read, update, delete and list memories."""

    base_path = "/v1/memories"

    async def create(
        self,
        request: CreateMemoryRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> Memory:
        return await self._post(self.base_path, Memory, request, cancel_event)

    async def get(
        self, memory_id: str, cancel_event: asyncio.Event | None = None
    ) -> Memory:
        require_id(memory_id, "memory_id")
        return await self._get(
            f"{self.base_path}/{memory_id}", Memory, cancel_event=cancel_event
        )

    async def update(
        self,
        memory_id: str,
        request: UpdateMemoryRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> Memory:
        require_id(memory_id, "memory_id")
        return await self._patch(
            f"{self.base_path}/{memory_id}", Memory, request, cancel_event
        )

    async def delete(
        self, memory_id: str, cancel_event: asyncio.Event | None = None
    ) -> None:
        require_id(memory_id, "memory_id")
        await self._delete(f"{self.base_path}/{memory_id}", cancel_event)

    async def list(
        self,
        request: ListMemoriesRequest | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> PaginatedResponse[Memory]:
        """
        List memories, optionally filtered and searched.

        Args:
            request: Optional filters, search query and paging
            cancel_event: Optional event that aborts the call when set

        Returns:
            One page of memories with pagination metadata
        """
        request = request or ListMemoriesRequest()
        params = build_query_params(
            q=request.q,
            mode=request.mode,
            limit=request.limit,
            page=request.page,
            offset=request.offset,
            type=request.type,
            spaceId=request.space_id,
            sortBy=request.sort_by,
            sortOrder=request.sort_order,
            tags=request.tags,
        )
        return await self._get(
            self.base_path,
            PaginatedResponse[Memory],
            query_params=params,
            cancel_event=cancel_event,
        )

    async def list_all(
        self,
        request: ListMemoriesRequest | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[Memory]:
        """
        Auto-paginating listing that yields every matching memory.

        Fetches one page per request, starting from ``request.page`` (default 1)
        with ``request.limit`` (default 100) memories per page, until the server
        reports no more pages or returns an empty one.

        Yields:
            Individual memories from all result pages
        """
        request = request or ListMemoriesRequest()
        page = request.page or 1
        limit = request.limit or 100

        while True:
            response = await self.list(
                request.model_copy(update={"page": page, "limit": limit}),
                cancel_event=cancel_event,
            )

            for memory in response.data:
                yield memory

            if not response.data or not (
                response.pagination and response.pagination.has_more
            ):
                break

            page += 1

    async def bulk_create(
        self,
        requests: Sequence[CreateMemoryRequest],
        cancel_event: asyncio.Event | None = None,
    ) -> BulkResult:
        return await self._post(
            f"{self.base_path}/bulk",
            BulkResult,
            {"memories": list(requests)},
            cancel_event,
        )

    async def upload(
        self,
        file_stream: IO[bytes] | bytes,
        file_name: str,
        content_type: str,
        fields: Mapping[str, Any] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> Memory:
        """
        Upload a file (for example an audio recording) as a new memory.

        Pass a seekable stream if the upload should survive retries; a
        non-seekable stream fails with ``ErrorKind.STREAM_NOT_SEEKABLE`` when a
        retry is needed.

        Args:
            file_stream: Binary file object or raw bytes
            file_name: Name of the uploaded file
            content_type: MIME type, e.g. ``audio/mpeg``
            fields: Extra form fields such as ``spaceId`` or ``tags``
        """
        return await self._post_multipart(
            f"{self.base_path}/upload",
            Memory,
            file_stream,
            file_name,
            content_type,
            fields,
            cancel_event,
        )
