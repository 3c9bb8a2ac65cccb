"""
Upload coordinator.

Validates the chosen file, resolves its MIME type and posts it as a
single-field multipart form to the session upload endpoint.
"""
import logging
import time
from pathlib import Path
from typing import Callable, Optional
import aiohttp

from ..api.async_client import AsyncAPIClient
from .mime import resolve_mime_type
from .models import LocalFile, UploadProgress, UploadResult
from .services import FileValidator, AsyncFileReader

logger = logging.getLogger('passshare.upload.coordinator')

UPLOAD_PATH = '/api/sessions/upload/{passkey}/{user_id}'
UPLOAD_FIELD = 'file'


class UploadCoordinator:
    """
    Coordinates a single file upload.
    
    Validation happens before any network traffic; the body is streamed
    from disk, and ``progress_callback`` receives the bytes handed to the
    connection so far.
    """
    
    def __init__(
        self,
        api_client: AsyncAPIClient,
        max_size: int = 10 * 1024 * 1024,
        chunk_size: int = 64 * 1024,
        validator: Optional[FileValidator] = None,
        file_reader: Optional[AsyncFileReader] = None
    ):
        """
        Initialize upload coordinator.
        
        Args:
            api_client: PassShare API client
            max_size: Largest accepted file in bytes
            chunk_size: Read block size
            validator: File validator implementation
            file_reader: File reader implementation
        """
        self._api = api_client
        self._validator = validator or FileValidator(max_size)
        self._file_reader = file_reader or AsyncFileReader(chunk_size)
    
    async def prepare(self, local_file: LocalFile) -> int:
        """
        Check the file without touching the network.
        
        Returns:
            Size in bytes
            
        Raises:
            FileTooLargeError: If the file is over the limit
            TransferError: If the file cannot be read
        """
        return await self._validator.validate(local_file)
    
    def build_form(
        self,
        local_file: LocalFile,
        mime_type: str,
        progress_callback: Optional[Callable[[int], None]] = None
    ) -> aiohttp.FormData:
        """Multipart body with a single ``file`` field streamed from disk."""
        form = aiohttp.FormData()
        form.add_field(
            UPLOAD_FIELD,
            self._file_reader.iter_chunks(Path(local_file.path), progress_callback),
            filename=local_file.name,
            content_type=mime_type
        )
        return form
    
    async def upload(
        self,
        local_file: LocalFile,
        passkey: str,
        user_id: str,
        progress_callback: Optional[Callable[[UploadProgress], None]] = None,
        size: Optional[int] = None
    ) -> UploadResult:
        """
        Execute the upload.
        
        Args:
            local_file: File chosen by the user
            passkey: Active session passkey
            user_id: Id of the uploading user
            progress_callback: Optional callback for progress updates
            size: Size already resolved by ``prepare`` (skips re-validation)
            
        Returns:
            Upload result
            
        Raises:
            FileTooLargeError: If the file is over the limit
            TransferError: If the file cannot be read
            APIError: If the server rejects the upload
            NetworkError: If the server cannot be reached
        """
        if size is None:
            size = await self.prepare(local_file)
        mime_type = resolve_mime_type(local_file.name, local_file.mime_type)
        logger.info(f"Starting upload: {local_file.name} ({size / (1024 * 1024):.2f} MB, {mime_type})")
        
        progress = UploadProgress(total_bytes=size)
        
        def on_read(loaded: int) -> None:
            progress.loaded_bytes = loaded
            if progress_callback:
                progress_callback(progress)
        
        form = self.build_form(local_file, mime_type, on_read)
        path = UPLOAD_PATH.format(passkey=passkey, user_id=user_id)
        
        started = time.time()
        response = await self._api.post_form(path, form)
        elapsed = time.time() - started
        logger.info(f"Uploaded {local_file.name} in {elapsed:.2f}s")
        
        return UploadResult(
            file_name=local_file.name,
            mime_type=mime_type,
            size=size,
            response=response
        )
