"""
Async PassShare API client.

Thin aiohttp wrapper shared by every remote call: it owns the HTTP
session, turns non-2xx responses into ``APIError`` and transport failures
into ``NetworkError``. Nothing is retried.
"""
import json
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional, Any, AsyncIterator
import aiohttp

from .config import APIConfig
from .errors import APIError, NetworkError


class AsyncAPIClient:
    """
    Asynchronous PassShare API client.

    Example:
        >>> config = APIConfig.from_env()
        >>> async with AsyncAPIClient(config) as client:
        ...     files = await client.get_json('/api/sessions/files/ABCD1234')
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize async API client.

        Args:
            config: API configuration (uses defaults if not provided)
            session: Optional shared aiohttp session (not closed by this client)
        """
        self._config = config or APIConfig.default()
        self._session = session
        self._owns_session = session is None
        self._closed = False

        from ..logging import get_logger
        self._logger = get_logger('passshare.api')
        root_logger = logging.getLogger()
        if not root_logger.handlers:
            self._logger.setLevel(self._config.log_level)

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> 'AsyncAPIClient':
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._closed:
            raise NetworkError("Client is closed")
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(**self._config.get_connector_kwargs())
            self._session = aiohttp.ClientSession(
                connector=connector,
                **self._config.get_session_kwargs()
            )
            self._owns_session = True
        return self._session

    async def close(self):
        """Close client and release resources."""
        self._closed = True
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _request_kwargs(self, timeout: Optional[float]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        if self._config.proxy:
            kwargs['proxy'] = self._config.proxy.to_aiohttp_proxy()
        if timeout is not None:
            kwargs['timeout'] = aiohttp.ClientTimeout(total=timeout)
        return kwargs

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        data: Any = None,
        timeout: Optional[float] = None
    ) -> Any:
        """
        Make a request and return the parsed response body.

        Args:
            method: HTTP method
            path: API path (joined to the base URL) or absolute URL
            json_body: JSON-serializable request body
            data: Raw body or ``aiohttp.FormData``
            timeout: Optional total timeout in seconds for this call

        Returns:
            Decoded JSON, response text, or None for an empty body

        Raises:
            APIError: If the server answers with a non-2xx status
            NetworkError: If the server cannot be reached
        """
        session = await self._ensure_session()
        url = self._config.url(path)
        self._logger.debug(f"{method} {url}")

        try:
            async with session.request(
                method,
                url,
                json=json_body,
                data=data,
                **self._request_kwargs(timeout)
            ) as response:
                body = await self.read_body(response)
                if response.status >= 400:
                    self._logger.debug(f"{method} {url} -> {response.status}: {body!r}")
                    raise APIError(response.status, body, url)
                self._logger.debug(f"{method} {url} -> {response.status}")
                return body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.error(f"Network error on {method} {url}: {e!r}")
            raise NetworkError(cause=e) from e

    async def get_json(self, path: str, **kwargs) -> Any:
        return await self.request('GET', path, **kwargs)

    async def post_json(self, path: str, payload: Dict[str, Any], **kwargs) -> Any:
        return await self.request('POST', path, json_body=payload, **kwargs)

    async def post_form(self, path: str, form: aiohttp.FormData, **kwargs) -> Any:
        return await self.request('POST', path, data=form, **kwargs)

    @asynccontextmanager
    async def stream(self, path: str) -> AsyncIterator[aiohttp.ClientResponse]:
        """
        Open a GET response for streaming.

        The response status is checked before it is handed out; the body is
        left unread for the caller to consume.

        Raises:
            APIError: If the server answers with a non-2xx status
            NetworkError: If the server cannot be reached or the stream breaks
        """
        session = await self._ensure_session()
        url = self._config.url(path)
        self._logger.debug(f"GET (stream) {url}")

        try:
            async with session.get(url, **self._request_kwargs(None)) as response:
                if response.status >= 400:
                    body = await self.read_body(response)
                    raise APIError(response.status, body, url)
                yield response
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.error(f"Network error on GET {url}: {e!r}")
            raise NetworkError(cause=e) from e

    @staticmethod
    async def read_body(response: aiohttp.ClientResponse) -> Any:
        """Decode a response body as JSON when possible, else text."""
        text = await response.text(errors='replace')
        if not text:
            return None
        if 'json' in (response.content_type or '') or text[:1] in ('{', '['):
            try:
                return json.loads(text)
            except json.JSONDecodeError:
                pass
        return text

    @staticmethod
    def is_json(response: aiohttp.ClientResponse) -> bool:
        return 'json' in (response.content_type or '')
