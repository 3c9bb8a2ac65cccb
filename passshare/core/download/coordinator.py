"""
Download coordinator.

Resolves the download URL, streams the body to disk and reports progress.
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import AsyncIterator, Callable, Optional
import aiofiles
import aiofiles.os
import aiohttp

from ..api.async_client import AsyncAPIClient
from ..exceptions import TransferError

logger = logging.getLogger('passshare.download.coordinator')

ProgressCallback = Callable[[int, int], None]

MAX_REDIRECT_BODY = 4096


def safe_file_name(file_name: str, fallback: str) -> str:
    """Reduce a server-provided display name to a bare file name."""
    name = Path(file_name.replace('\\', '/')).name if file_name else ''
    if name in ('', '.', '..'):
        return fallback
    return name


class DownloadCoordinator:
    """
    Downloads one shared file.
    
    The download endpoint either streams the file itself or answers with a
    small JSON document ``{"url": ...}`` naming where to fetch it from. Any
    other body, JSON included, is the file.
    """
    
    def __init__(self, api_client: AsyncAPIClient, chunk_size: int = 64 * 1024):
        self._api = api_client
        self._chunk_size = chunk_size
    
    async def download(
        self,
        file_id: str,
        file_name: str,
        dest_dir: Path,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Path:
        """
        Download a file into ``dest_dir``.
        
        Args:
            file_id: Shared file id
            file_name: Display name, used as the local file name
            dest_dir: Destination directory (created if missing)
            progress_callback: Optional callback(written_bytes, expected_bytes);
                expected is 0 when the server does not announce a length
                
        Returns:
            Path of the written file
            
        Raises:
            APIError: If the server rejects the request
            NetworkError: If the transfer fails
            TransferError: If the file cannot be written
        """
        dest_dir = Path(dest_dir)
        try:
            await aiofiles.os.makedirs(dest_dir, exist_ok=True)
        except OSError as e:
            raise TransferError(f"Cannot create {dest_dir}: {e}") from e
        
        dest = dest_dir / safe_file_name(file_name, file_id)
        url = self._api.config.download_url(file_id)
        logger.info(f"Downloading {file_id} to {dest}")
        
        async with self._api.stream(url) as response:
            body = await response.read() if self._may_redirect(response) else None
            redirect = self._redirect_url(body) if body is not None else None
            if redirect:
                async with self._api.stream(redirect) as file_response:
                    written = await self._write(file_response, dest, progress_callback)
            else:
                written = await self._write(response, dest, progress_callback, body)
        
        logger.info(f"Downloaded {dest.name} ({written} bytes)")
        return dest
    
    def _may_redirect(self, response: aiohttp.ClientResponse) -> bool:
        length = response.content_length
        return (
            self._api.config.follow_download_url
            and self._api.is_json(response)
            and length is not None
            and length <= MAX_REDIRECT_BODY
        )
    
    @staticmethod
    def _redirect_url(body: bytes) -> Optional[str]:
        """The ``url`` of a ``{"url": ...}`` document, None for anything else."""
        try:
            document = json.loads(body)
        except ValueError:
            return None
        if not isinstance(document, dict) or set(document) != {'url'}:
            return None
        url = document['url']
        if isinstance(url, str) and url.startswith(('http://', 'https://')):
            logger.debug(f"Following download URL {url}")
            return url
        return None
    
    async def _write(
        self,
        response: aiohttp.ClientResponse,
        dest: Path,
        progress_callback: Optional[ProgressCallback],
        body: Optional[bytes] = None
    ) -> int:
        """Write ``body`` if it was already read, else stream the response."""
        expected = response.content_length or 0
        written = 0
        try:
            async with aiofiles.open(dest, 'wb') as f:
                chunks = self._chunks(body) if body is not None else \
                    response.content.iter_chunked(self._chunk_size)
                async for chunk in chunks:
                    await f.write(chunk)
                    written += len(chunk)
                    if progress_callback:
                        progress_callback(written, expected)
        except (aiohttp.ClientError, asyncio.TimeoutError):
            await self._discard(dest)
            raise
        except OSError as e:
            await self._discard(dest)
            raise TransferError(f"Cannot write {dest.name}: {e}") from e
        except BaseException:
            await self._discard(dest)
            raise
        return written
    
    async def _chunks(self, body: bytes) -> AsyncIterator[bytes]:
        for start in range(0, len(body), self._chunk_size):
            yield body[start:start + self._chunk_size]
    
    @staticmethod
    async def _discard(dest: Path) -> None:
        try:
            await aiofiles.os.remove(dest)
        except OSError:
            logger.debug(f"No partial file to remove at {dest}")
