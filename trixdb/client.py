"""
TrixDB API Client

The client owns one ``HttpPipeline`` and exposes the API resources built on it.
"""

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from typing_extensions import Self

import httpx

from trixdb.config import TrixDBClientConfig
from trixdb.logging import get_logger
from trixdb.pipeline import API_VERSION, HttpPipeline
from trixdb.resources import JobsResource, MemoriesResource, SpacesResource


logger = get_logger(__name__)


class TrixDBClient:
    """
    Client for the TrixDB REST API.

    Resources:
    - memories: create, read, update, delete, list, bulk create, upload
    - spaces: manage the containers memories live in
    - jobs: inspect and retry background jobs

    The client is safe to share between tasks. Use it as an async context
    manager, or call ``aclose()`` when done.
    """

    def __init__(
        self,
        config: TrixDBClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the TrixDB client.

        Args:
            config: Validated client configuration
            http_client: Optional externally managed ``httpx.AsyncClient``;
                it is not closed when this client is closed
        """
        self.config = config
        self._pipeline = HttpPipeline(config, http_client=http_client)

        self.memories = MemoriesResource(self._pipeline)
        self.spaces = SpacesResource(self._pipeline)
        self.jobs = JobsResource(self._pipeline)

        logger.debug("TrixDB client initialized", sdk_version=self.version)

    @classmethod
    def from_api_key(cls, api_key: str, base_url: str | None = None) -> "TrixDBClient":
        """Create a client from an API key and optional base URL."""
        values: dict[str, Any] = {"api_key": api_key}
        if base_url is not None:
            values["base_url"] = base_url
        return cls(TrixDBClientConfig(**values))

    @classmethod
    def from_environment(cls, **overrides: Any) -> "TrixDBClient":
        """
        Create a client from ``TRIXDB_*`` environment variables.

        Raises:
            TrixDBConfigError: If no credential is set in the environment
        """
        return cls(TrixDBClientConfig.from_environment(**overrides))

    @property
    def version(self) -> str:
        from . import __version__

        return __version__

    @property
    def api_version(self) -> str:
        return API_VERSION

    @property
    def pipeline(self) -> HttpPipeline:
        return self._pipeline

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this client created it."""
        await self._pipeline.aclose()

    async def __aenter__(self) -> "Self":
        """Support using the client as an async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Close the client when exiting the context manager."""
        await self.aclose()
