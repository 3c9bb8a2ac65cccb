"""
Background file list refresher.

Runs a silent refresh on a fixed interval for as long as a session is
active. The task is cancelled when the session ends or the owner closes.
"""
import asyncio
from typing import Awaitable, Callable, Optional

from ..logging import get_logger

logger = get_logger('passshare.sharing.poller')


class FileListPoller:
    """
    Cancellable repeating timer task.
    
    Example:
        >>> poller = FileListPoller(lambda: session.refresh_files(silent=True), 3.0)
        >>> poller.start()
        >>> ...
        >>> await poller.stop()
    """
    
    def __init__(self, refresh: Callable[[], Awaitable[object]], interval: float = 3.0):
        """
        Args:
            refresh: Coroutine function performing one silent refresh
            interval: Seconds between refreshes
        """
        if interval <= 0:
            raise ValueError("Poll interval must be positive")
        self._refresh = refresh
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0
    
    @property
    def interval(self) -> float:
        return self._interval
    
    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
    
    def start(self) -> None:
        """Start polling (no-op when already running)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name='passshare-file-poller')
        logger.debug(f"Polling every {self._interval:.1f}s")
    
    async def stop(self) -> None:
        """Cancel the polling task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Polling stopped")
    
    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.ticks += 1
            try:
                await self._refresh()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.debug(f"Background refresh failed: {e!r}")
