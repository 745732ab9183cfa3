"""Async HTTP client base for the transcription REST API."""

import asyncio
from typing import Any, Final

import aiohttp
import orjson as json
from aiohttp import ClientSession, ClientTimeout
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from phoneme_review.config import ServiceConfig
from phoneme_review.exceptions import TransportError

DEFAULT_MAX_RETRIES: Final[int] = 3
DEFAULT_BACKOFF_FACTOR: Final[float] = 0.5
JSON_HEADERS: Final[dict[str, str]] = {"Content-Type": "application/json"}


class ApiClient:
    """Shared session handling and request plumbing for API clients.

    Args:
        config: Service configuration.
        session: Existing session to reuse; the client only closes sessions
            it created itself.
    """

    def __init__(self, *, config: ServiceConfig, session: ClientSession | None = None) -> None:
        self._config = config
        self._session = session
        self._owns_session = session is None
        self.endpoint = config.api_endpoint

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @endpoint.setter
    def endpoint(self, value: str) -> None:
        self._endpoint = value.strip().rstrip("/")

    async def __aenter__(self) -> "ApiClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> None:
        if self._session is None:
            self._session = ClientSession(timeout=ClientTimeout(total=self._config.request_timeout))
            self._owns_session = True

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    @retry(  # type: ignore[misc]
        stop=stop_after_attempt(DEFAULT_MAX_RETRIES),
        wait=wait_exponential(multiplier=DEFAULT_BACKOFF_FACTOR),
        retry=retry_if_exception_type((aiohttp.ClientConnectionError, asyncio.TimeoutError)),
        reraise=True,
    )
    async def _make_request(
        self,
        *,
        method: str,
        url: str,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> tuple[int, bytes]:
        """Send one HTTP request.

        Returns:
            Tuple of (status code, response body).
        """
        await self._ensure_session()
        if self._session is None:
            raise TransportError(msg="Session not initialized")
        async with self._session.request(method, url, data=data, headers=headers) as response:
            body = await response.read()
            return response.status, body

    async def _send(
        self,
        *,
        method: str,
        url: str,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> bytes:
        """Send a request and fail on network errors or non-success status.

        Raises:
            TransportError: On network failure or a non-2xx response.
        """
        try:
            status, body = await self._make_request(
                method=method, url=url, data=data, headers=headers
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"{method} {url} failed: {e!s}")
            raise TransportError(msg=f"Request to {url} failed: {e}", retryable=True) from e

        if not 200 <= status < 300:
            logger.warning(f"{method} {url} returned {status}")
            raise TransportError(msg=f"API error ({status})", status=status)
        return body

    async def _request_json(
        self, *, method: str, url: str, payload: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Send a JSON request and return the decoded JSON object.

        Raises:
            TransportError: On failure or when the body is not a JSON object.
        """
        body = await self._send(
            method=method,
            url=url,
            data=json.dumps(payload) if payload is not None else None,
            headers=JSON_HEADERS if payload is not None else None,
        )
        return self._parse_response(body=body, url=url)

    def _parse_response(self, *, body: bytes, url: str) -> dict[str, Any]:
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise TransportError(msg=f"Invalid JSON response from {url}: {e}") from e
        if not isinstance(data, dict):
            raise TransportError(msg=f"Unexpected response from {url}: expected an object")
        return data
