from unittest.mock import patch

import httpx
import pytest

from trixdb import HttpPipeline, TrixDBClient, TrixDBClientConfig


class ScriptedHandler:
    """Replays scripted outcomes for ``httpx.MockTransport`` and records requests.

    Each item is an ``httpx.Response``, an exception to raise, or a callable
    taking the request. The last item repeats once the script runs out.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.outcomes)) - 1
        outcome = self.outcomes[index]
        if isinstance(outcome, Exception):
            raise outcome
        if callable(outcome):
            return outcome(request)
        # A response object can only be bound to one request
        return httpx.Response(
            outcome.status_code, headers=outcome.headers, content=outcome.content
        )

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture()
def config():
    return TrixDBClientConfig(
        api_key="test-key",
        base_url="https://api.test",
        max_retries=3,
        custom_headers={"X-Tenant": "acme"},
    )


@pytest.fixture()
def make_pipeline(config):
    """Build a pipeline on top of a MockTransport driven by ``handler``."""

    def _make(handler, **overrides) -> HttpPipeline:
        pipeline_config = config.model_copy(update=overrides) if overrides else config
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return HttpPipeline(pipeline_config, http_client=http_client)

    return _make


@pytest.fixture()
def make_client(config):
    def _make(handler) -> TrixDBClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return TrixDBClient(config, http_client=http_client)

    return _make


@pytest.fixture()
def no_backoff():
    """Make exponential backoff instant; yields the mock to inspect calls."""
    with patch("trixdb.pipeline.calculate_backoff", return_value=0.0) as mock:
        yield mock
