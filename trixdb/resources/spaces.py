import asyncio

from trixdb.models import (
    CreateSpaceRequest,
    PaginatedResponse,
    Space,
    UpdateSpaceRequest,
)
from trixdb.resources.base import BaseResource, build_query_params, require_id


class SpacesResource(BaseResource):
    """Manage spaces, the containers memories are organized in."""

    base_path = "/v1/spaces"

    async def create(
        self,
        request: CreateSpaceRequest | str,
        cancel_event: asyncio.Event | None = None,
    ) -> Space:
        """Create a space from a request, or from just a name."""
        if isinstance(request, str):
            request = CreateSpaceRequest(name=request)
        return await self._post(self.base_path, Space, request, cancel_event)

    async def get(
        self, space_id: str, cancel_event: asyncio.Event | None = None
    ) -> Space:
        require_id(space_id, "space_id")
        return await self._get(
            f"{self.base_path}/{space_id}", Space, cancel_event=cancel_event
        )

    async def update(
        self,
        space_id: str,
        request: UpdateSpaceRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> Space:
        require_id(space_id, "space_id")
        return await self._patch(
            f"{self.base_path}/{space_id}", Space, request, cancel_event
        )

    async def delete(
        self, space_id: str, cancel_event: asyncio.Event | None = None
    ) -> None:
        require_id(space_id, "space_id")
        await self._delete(f"{self.base_path}/{space_id}", cancel_event)

    async def list(
        self,
        limit: int | None = None,
        page: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> PaginatedResponse[Space]:
        return await self._get(
            self.base_path,
            PaginatedResponse[Space],
            query_params=build_query_params(limit=limit, page=page),
            cancel_event=cancel_event,
        )
