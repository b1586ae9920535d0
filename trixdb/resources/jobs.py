import asyncio
from collections.abc import AsyncIterator

from trixdb.models import Job, JobStats, ListJobsRequest, PaginatedResponse
from trixdb.resources.base import BaseResource, build_query_params, require_id


class JobsResource(BaseResource):
    """Inspect and retry background jobs."""

    base_path = "/v1/jobs"

    async def get_stats(self, cancel_event: asyncio.Event | None = None) -> JobStats:
        """Get per-queue job counts."""
        return await self._get(
            f"{self.base_path}/stats", JobStats, cancel_event=cancel_event
        )

    async def get(
        self, queue: str, job_id: str, cancel_event: asyncio.Event | None = None
    ) -> Job:
        require_id(queue, "queue")
        require_id(job_id, "job_id")
        return await self._get(
            f"{self.base_path}/{queue}/{job_id}", Job, cancel_event=cancel_event
        )

    async def list(
        self,
        request: ListJobsRequest | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> PaginatedResponse[Job]:
        request = request or ListJobsRequest()
        params = build_query_params(
            queue=request.queue,
            status=request.status,
            limit=request.limit,
            offset=request.offset,
        )
        return await self._get(
            self.base_path,
            PaginatedResponse[Job],
            query_params=params,
            cancel_event=cancel_event,
        )

    async def list_all(
        self,
        request: ListJobsRequest | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[Job]:
        """
        Auto-paginating listing that yields every matching job.

        Pages by offset, ``request.limit`` (default 100) jobs at a time, until
        the server reports no more results.
        """
        request = request or ListJobsRequest()
        limit = request.limit or 100
        offset = request.offset or 0

        while True:
            response = await self.list(
                request.model_copy(update={"limit": limit, "offset": offset}),
                cancel_event=cancel_event,
            )

            for job in response.data:
                yield job

            if not response.data or not (
                response.pagination and response.pagination.has_more
            ):
                break

            offset += limit

    async def retry(
        self, queue: str, job_id: str, cancel_event: asyncio.Event | None = None
    ) -> Job:
        """Re-queue a failed job."""
        require_id(queue, "queue")
        require_id(job_id, "job_id")
        return await self._post(
            f"{self.base_path}/{queue}/{job_id}/retry", Job, None, cancel_event
        )
