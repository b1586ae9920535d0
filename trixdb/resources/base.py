import asyncio
from collections.abc import Mapping
from enum import Enum
from typing import IO, Any, TypeVar

import httpx
from pydantic import BaseModel

from trixdb.exceptions import ErrorKind, TrixDBError
from trixdb.pipeline import HttpPipeline


M = TypeVar("M", bound=BaseModel)


def build_query_params(**params: Any) -> dict[str, str]:
    """
    Build query parameters from keyword arguments.

    None values are dropped, enums are sent as their lowercase value, lists
    are joined with commas and booleans are sent as ``true``/``false``.
    """
    query: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, Enum):
            query[key] = str(value.value).lower()
        elif isinstance(value, bool):
            query[key] = "true" if value else "false"
        elif isinstance(value, list | tuple):
            if value:
                query[key] = ",".join(str(v) for v in value)
        else:
            query[key] = str(value)
    return query


def require_id(value: str, name: str = "id") -> str:
    if not value or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")
    return value


class BaseResource:
    """Base class for API resources; one pipeline call per operation."""

    def __init__(self, pipeline: HttpPipeline):
        self._pipeline = pipeline

    @staticmethod
    def _deserialize(response: httpx.Response, model: type[M]) -> M:
        if not response.content:
            raise TrixDBError(
                "Response was empty",
                ErrorKind.API,
                status_code=response.status_code,
            )
        return model.model_validate(response.json())

    async def _get(
        self,
        path: str,
        model: type[M],
        query_params: Mapping[str, Any] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> M:
        response = await self._pipeline.send(
            "GET", path, query_params=query_params, cancel_event=cancel_event
        )
        return self._deserialize(response, model)

    async def _post(
        self,
        path: str,
        model: type[M],
        body: Any | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> M:
        response = await self._pipeline.send(
            "POST", path, body=body, cancel_event=cancel_event
        )
        return self._deserialize(response, model)

    async def _patch(
        self,
        path: str,
        model: type[M],
        body: Any | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> M:
        response = await self._pipeline.send(
            "PATCH", path, body=body, cancel_event=cancel_event
        )
        return self._deserialize(response, model)

    async def _delete(
        self, path: str, cancel_event: asyncio.Event | None = None
    ) -> None:
        await self._pipeline.send("DELETE", path, cancel_event=cancel_event)

    async def _post_multipart(
        self,
        path: str,
        model: type[M],
        file_stream: IO[bytes] | bytes,
        file_name: str,
        content_type: str,
        extra_fields: Mapping[str, Any] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> M:
        response = await self._pipeline.send_multipart(
            path,
            file_stream,
            file_name,
            content_type,
            extra_fields,
            cancel_event=cancel_event,
        )
        return self._deserialize(response, model)
