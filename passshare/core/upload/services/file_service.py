"""
File validation and reading services.

Single Responsibility: Each class handles one specific task.
"""
from pathlib import Path
from stat import S_ISREG
from typing import AsyncIterator, Callable, Optional
import logging
import aiofiles
import aiofiles.os

from ...exceptions import FileTooLargeError, TransferError
from ..models import LocalFile


class FileValidator:
    """
    Validates files before upload.
    
    Responsibilities:
    - Resolve the file size when the picker did not report one
    - Enforce the upload size limit
    """
    
    def __init__(self, max_size: int):
        self._max_size = max_size
        self._logger = logging.getLogger('passshare.upload.file')
    
    @property
    def max_size(self) -> int:
        return self._max_size
    
    async def resolve_size(self, local_file: LocalFile) -> int:
        """
        Size reported by the picker, or a stat of the file.
        
        Raises:
            TransferError: If the file is missing or is not a regular file
        """
        path = Path(local_file.path)
        try:
            stat = await aiofiles.os.stat(path)
        except OSError as e:
            raise TransferError(f"File not found: {path}") from e
        if not S_ISREG(stat.st_mode):
            raise TransferError(f"Path is not a file: {path}")
        
        if local_file.size is not None and local_file.size >= 0:
            return local_file.size
        self._logger.debug(f"Resolved size of {path.name} via stat: {stat.st_size} bytes")
        return stat.st_size
    
    def validate_size(self, file_size: int) -> None:
        """
        Raises:
            FileTooLargeError: If the file exceeds the upload limit
        """
        if file_size > self._max_size:
            raise FileTooLargeError(file_size, self._max_size)
    
    async def validate(self, local_file: LocalFile) -> int:
        """Resolve and check the size; returns the size in bytes."""
        size = await self.resolve_size(local_file)
        self.validate_size(size)
        return size


class AsyncFileReader:
    """
    Asynchronous chunked file reader.
    
    Uses aiofiles for non-blocking I/O; reports cumulative bytes read so the
    caller can derive upload progress.
    """
    
    def __init__(self, chunk_size: int = 64 * 1024):
        self._chunk_size = chunk_size
        self._logger = logging.getLogger('passshare.upload.file')
    
    async def iter_chunks(
        self,
        file_path: Path,
        on_read: Optional[Callable[[int], None]] = None
    ) -> AsyncIterator[bytes]:
        """
        Yield the file in chunks.
        
        Args:
            file_path: Path to the file
            on_read: Called with the cumulative byte count after each chunk
        """
        loaded = 0
        async with aiofiles.open(file_path, 'rb') as f:
            while True:
                chunk = await f.read(self._chunk_size)
                if not chunk:
                    break
                loaded += len(chunk)
                if on_read:
                    on_read(loaded)
                yield chunk
        self._logger.debug(f"Read {loaded} bytes from {file_path.name}")
