"""
Hand-off of a finished download.

The mobile client opens the platform share sheet; here the step is a
pluggable handler so front ends can open, reveal or forward the file.
"""
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..logging import get_logger

logger = get_logger('passshare.download')


@runtime_checkable
class ShareHandler(Protocol):
    """Receives the local path of every completed download."""
    
    async def share(self, path: Path) -> None:
        ...


class LoggingShareHandler:
    """Default handler: records where the file landed."""
    
    async def share(self, path: Path) -> None:
        logger.info(f"Download ready at {path}")
