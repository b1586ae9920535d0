"""
HTTP request pipeline for the TrixDB API.

All resource wrappers go through ``HttpPipeline``. It attaches the auth and
default headers, retries transient failures with exponential backoff (or the
server's Retry-After hint on 429), and turns every failure into a
``TrixDBError`` with the appropriate ``ErrorKind``.
"""

import asyncio
import io
import json
import time
from collections.abc import Awaitable, Callable, Mapping
from datetime import timedelta
from typing import IO, TYPE_CHECKING, Any


if TYPE_CHECKING:
    from typing_extensions import Self

import httpx
from pydantic import BaseModel
from tenacity import RetryCallState
from tenacity.asyncio import AsyncRetrying
from tenacity.retry import retry_if_exception
from tenacity.stop import stop_after_attempt

from trixdb.backoff import calculate_backoff, parse_retry_after
from trixdb.config import TrixDBClientConfig
from trixdb.exceptions import ErrorKind, TrixDBError, kind_for_status
from trixdb.logging import get_logger


logger = get_logger(__name__)

API_VERSION = "v1"
REQUEST_ID_HEADER = "X-Request-Id"


def to_jsonable(value: Any) -> Any:
    """Convert request bodies (pydantic models, possibly nested) to JSON data."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True, mode="json")
    if isinstance(value, Mapping):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [to_jsonable(v) for v in value]
    return value


def _clean_params(query_params: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not query_params:
        return None
    params = {k: v for k, v in query_params.items() if v is not None}
    return params or None


def _stringify_fields(fields: Mapping[str, Any] | None) -> dict[str, str]:
    data: dict[str, str] = {}
    for key, value in (fields or {}).items():
        if value is None:
            continue
        if isinstance(value, str):
            data[key] = value
        else:
            data[key] = json.dumps(to_jsonable(value))
    return data


def _is_seekable(stream: Any) -> bool:
    seekable = getattr(stream, "seekable", None)
    if not callable(seekable):
        return False
    try:
        return bool(seekable())
    except (OSError, ValueError):
        return False


def _parse_field_errors(raw: Any) -> dict[str, list[str]] | None:
    if not isinstance(raw, Mapping):
        return None
    errors: dict[str, list[str]] = {}
    for field, messages in raw.items():
        if isinstance(messages, list):
            errors[str(field)] = [str(m) for m in messages]
        elif messages is not None:
            errors[str(field)] = [str(messages)]
    return errors


def _parse_error_body(
    response: httpx.Response,
) -> tuple[str, str | None, dict[str, list[str]] | None, str | None]:
    """Read ``(message, code, field_errors, request_id)`` from an error body.

    Never raises: a body that is not a JSON object falls back to the reason
    phrase with everything else absent.
    """
    fallback = response.reason_phrase or "Unknown error"
    try:
        data = response.json()
    except (ValueError, UnicodeDecodeError):
        return fallback, None, None, None
    if not isinstance(data, dict):
        return fallback, None, None, None

    message = data.get("message")
    if not isinstance(message, str) or not message:
        message = fallback
    code = data.get("code")
    request_id = data.get("requestId") or data.get("request_id")
    return (
        message,
        str(code) if code is not None else None,
        _parse_field_errors(data.get("errors")),
        str(request_id) if request_id else None,
    )


def classify_response(response: httpx.Response) -> TrixDBError:
    """Build the error for a non-2xx response."""
    message, error_code, field_errors, body_request_id = _parse_error_body(response)
    kind = kind_for_status(response.status_code)

    retry_after_seconds = None
    reset_at = None
    if kind is ErrorKind.RATE_LIMIT:
        retry_after_seconds, reset_at = parse_retry_after(
            response.headers.get("Retry-After")
        )

    return TrixDBError(
        message,
        kind,
        status_code=response.status_code,
        error_code=error_code,
        request_id=response.headers.get(REQUEST_ID_HEADER) or body_request_id,
        retry_after_seconds=retry_after_seconds,
        reset_at=reset_at,
        field_errors=field_errors if kind is ErrorKind.VALIDATION else None,
    )


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, TrixDBError) and exc.retryable


def retry_wait(retry_state: RetryCallState) -> float:
    """
    Seconds to wait before the next attempt.

    A 429 carrying a Retry-After hint waits exactly that long; everything else
    uses exponential backoff for the retry about to happen.
    """
    error = retry_state.outcome.exception() if retry_state.outcome else None
    if (
        isinstance(error, TrixDBError)
        and error.kind is ErrorKind.RATE_LIMIT
        and error.retry_after_seconds is not None
    ):
        return error.retry_after_seconds
    return calculate_backoff(retry_state.attempt_number)


class HttpPipeline:
    """
    Sends requests to the TrixDB API with retries and error mapping.

    The pipeline is safe to share between concurrent tasks. If an
    ``httpx.AsyncClient`` is passed in, the caller keeps ownership of it and
    ``aclose()`` leaves it open; otherwise the pipeline creates its own client
    and closes it on ``aclose()``.
    """

    def __init__(
        self,
        config: TrixDBClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        from . import __version__

        self.config = config
        self._headers = self._build_headers(config, __version__)
        self._closed = False

        if http_client is not None:
            self._client = http_client
            self._owns_client = False
        else:
            self._client = httpx.AsyncClient(
                timeout=config.timeout,
                limits=httpx.Limits(max_connections=20, keepalive_expiry=300.0),
            )
            self._owns_client = True

    @staticmethod
    def _build_headers(config: TrixDBClientConfig, version: str) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": f"trixdb-python/{version}",
            "X-SDK-Version": version,
            "X-API-Version": API_VERSION,
        }
        if config.custom_headers:
            headers.update(config.custom_headers)
        headers["Authorization"] = f"Bearer {config.credential}"
        return headers

    @property
    def owns_client(self) -> bool:
        return self._owns_client

    @property
    def closed(self) -> bool:
        return self._closed

    async def aclose(self) -> None:
        """Release the connection pool if this pipeline created it.

        Safe to call more than once; the pool is closed exactly once.
        """
        if self._closed:
            return
        self._closed = True
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "Self":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    def _ensure_open(self) -> None:
        if self._closed:
            raise TrixDBError(
                "HttpPipeline is closed; create a new client to send requests",
                ErrorKind.CLOSED,
            )

    def _build_url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    async def send(
        self,
        method: str,
        path: str,
        body: Any | None = None,
        query_params: Mapping[str, Any] | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> httpx.Response:
        """
        Send a JSON request and return the successful response.

        Args:
            method: HTTP method
            path: Path relative to the configured base URL
            body: Optional JSON body; pydantic models are dumped by alias
            query_params: Optional query parameters; None values are dropped
            cancel_event: Optional event that aborts the call when set

        Returns:
            The 2xx ``httpx.Response``; the caller deserializes it

        Raises:
            TrixDBError: When the request fails or retries are exhausted
        """
        self._ensure_open()
        method = method.upper()
        url = self._build_url(path)
        params = _clean_params(query_params)
        payload = to_jsonable(body) if body is not None else None

        def issue() -> Awaitable[httpx.Response]:
            return self._client.request(
                method,
                url,
                params=params,
                json=payload,
                headers=self._headers,
                timeout=self.config.timeout,
            )

        return await self._execute(method, url, issue, cancel_event=cancel_event)

    async def send_multipart(
        self,
        path: str,
        file_stream: IO[bytes] | bytes,
        file_name: str,
        content_type: str,
        extra_fields: Mapping[str, Any] | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> httpx.Response:
        """
        Upload a file as multipart/form-data and return the successful response.

        The stream is rewound before each retry. A stream that cannot be
        rewound makes the call fail with ``STREAM_NOT_SEEKABLE`` as soon as a
        retry would be needed, since the partially consumed body cannot be
        sent again.

        Args:
            path: Path relative to the configured base URL
            file_stream: Binary file object (or raw bytes) sent as the ``file`` part
            file_name: File name reported in the part
            content_type: MIME type of the file part
            extra_fields: Additional form fields; non-string values are JSON-encoded
            cancel_event: Optional event that aborts the call when set
        """
        self._ensure_open()
        if isinstance(file_stream, bytes | bytearray):
            file_stream = io.BytesIO(file_stream)

        url = self._build_url(path)
        data = _stringify_fields(extra_fields)
        seekable = _is_seekable(file_stream)

        def issue() -> Awaitable[httpx.Response]:
            return self._client.request(
                "POST",
                url,
                data=data,
                files={"file": (file_name, file_stream, content_type)},
                headers=self._headers,
                timeout=self.config.timeout,
            )

        def rewind(error: TrixDBError) -> None:
            if not seekable:
                raise TrixDBError(
                    "Cannot retry upload: file stream is not seekable",
                    ErrorKind.STREAM_NOT_SEEKABLE,
                    status_code=error.status_code,
                    request_id=error.request_id,
                ) from error
            file_stream.seek(0)

        return await self._execute(
            "POST", url, issue, before_retry=rewind, cancel_event=cancel_event
        )

    async def _execute(
        self,
        method: str,
        url: str,
        issue: Callable[[], Awaitable[httpx.Response]],
        *,
        before_retry: Callable[[TrixDBError], None] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> httpx.Response:
        """Run the retry loop shared by ``send`` and ``send_multipart``."""
        started = time.monotonic()
        attempts = 0

        def before_sleep(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception()
            if before_retry is not None:
                before_retry(error)
            logger.info(
                "Retrying request",
                method=method,
                url=url,
                attempt=retry_state.attempt_number,
                kind=error.kind.value,
                delay_seconds=round(retry_state.next_action.sleep, 3),
            )

        async def sleep(seconds: float) -> None:
            await self._wait(lambda: asyncio.sleep(seconds), cancel_event)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.max_retries + 1),
            wait=retry_wait,
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep,
            sleep=sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    response = await self._attempt(
                        method, url, issue, attempts, cancel_event
                    )
        except TrixDBError as e:
            # Retryable errors only escape once the attempt budget is spent
            if e.retryable:
                logger.error(
                    "Request failed after retries",
                    method=method,
                    url=url,
                    attempts=attempts,
                    elapsed_seconds=round(time.monotonic() - started, 3),
                    kind=e.kind.value,
                    status_code=e.status_code,
                )
            raise
        return response

    async def _attempt(
        self,
        method: str,
        url: str,
        issue: Callable[[], Awaitable[httpx.Response]],
        attempt_number: int,
        cancel_event: asyncio.Event | None,
    ) -> httpx.Response:
        """Issue one request and raise the classified error if it fails."""
        log = logger.bind(method=method, url=url, attempt=attempt_number)
        log.debug("Sending request")
        try:
            response = await self._wait(issue, cancel_event)
        except httpx.TimeoutException as e:
            log.warning("Request timed out")
            raise TrixDBError(
                f"Request timed out after {self.config.timeout:g}s",
                ErrorKind.TIMEOUT,
                timeout=timedelta(seconds=self.config.timeout),
            ) from e
        except httpx.RequestError as e:
            log.warning("Network error", error=str(e))
            raise TrixDBError(f"Network error: {e}", ErrorKind.NETWORK) from e

        log.debug("Received response", status_code=response.status_code)
        if response.is_success:
            return response

        error = classify_response(response)
        log.warning(
            "Retryable response" if error.retryable else "Request failed",
            kind=error.kind.value,
            status_code=error.status_code,
            request_id=error.request_id,
        )
        raise error

    @staticmethod
    async def _wait(
        start: Callable[[], Awaitable[Any]], cancel_event: asyncio.Event | None
    ) -> Any:
        """Await ``start()``, aborting with a CANCELLED error if the event fires."""
        if cancel_event is None:
            return await start()
        if cancel_event.is_set():
            raise TrixDBError("Request was cancelled", ErrorKind.CANCELLED)

        task = asyncio.ensure_future(start())
        cancel_waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait(
                {task, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.wait({task})

        if not task.cancelled():
            return task.result()
        raise TrixDBError("Request was cancelled", ErrorKind.CANCELLED)
