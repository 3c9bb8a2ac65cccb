"""
Data models for upload module.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from ..utils import upload_percent


@dataclass
class LocalFile:
    """
    A file chosen by the user (document, camera or gallery picker).
    
    Attributes:
        path: Local filesystem path
        mime_type: Type reported by the picker, if any
        size: Size reported by the picker, if any
        name: File name to send (defaults to the path's name)
    """
    path: Union[str, Path]
    mime_type: Optional[str] = None
    size: Optional[int] = None
    name: Optional[str] = None
    
    def __post_init__(self):
        self.path = Path(self.path)
        if not self.name:
            self.name = self.path.name


@dataclass
class UploadProgress:
    """Upload progress information."""
    loaded_bytes: int = 0
    total_bytes: int = 0
    
    @property
    def percentage(self) -> int:
        return upload_percent(self.loaded_bytes, self.total_bytes)


@dataclass
class UploadResult:
    """
    Result of a completed upload.
    
    Attributes:
        file_name: Name sent to the server
        mime_type: Resolved MIME type
        size: Bytes sent
        response: Raw server response body
    """
    file_name: str
    mime_type: str
    size: int
    response: object = field(default=None, repr=False)
