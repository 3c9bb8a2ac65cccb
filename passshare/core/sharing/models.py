"""
Data models for the sharing session.

Uses dataclasses so that file lists compare by value.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SharedFile:
    """
    A file stored in a session on the server.
    
    Attributes:
        id: Opaque file id
        file_name: Display file name
        size: Size in bytes
        uploader_username: Name of the member who uploaded it
        upload_date: Server timestamp string, if provided
    """
    id: str
    file_name: str
    size: int = 0
    uploader_username: str = ''
    upload_date: Optional[str] = None
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SharedFile':
        """Create from the server's camelCase representation."""
        file_id = data.get('id', data.get('_id'))
        if file_id is None:
            raise ValueError(f"File entry without id: {data!r}")
        return cls(
            id=str(file_id),
            file_name=str(data.get('fileName') or data.get('file_name') or ''),
            size=int(data.get('size') or 0),
            uploader_username=str(data.get('uploaderUsername') or data.get('uploader_username') or ''),
            upload_date=data.get('uploadDate') or data.get('upload_date'),
        )
    
    def to_dict(self) -> Dict[str, Any]:
        result = {
            'id': self.id,
            'fileName': self.file_name,
            'size': self.size,
            'uploaderUsername': self.uploader_username,
        }
        if self.upload_date is not None:
            result['uploadDate'] = self.upload_date
        return result
    

def parse_file_list(payload: Any) -> List[SharedFile]:
    """
    Parse a file list response.
    
    Raises:
        ValueError: If the payload is not a list of file objects
    """
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of files, got {type(payload).__name__}")
    for item in payload:
        if not isinstance(item, dict):
            raise ValueError(f"Expected a file object, got {type(item).__name__}")
    return [SharedFile.from_dict(item) for item in payload]


@dataclass(frozen=True)
class Notice:
    """
    User-facing notification (the toast of the mobile client).
    
    Attributes:
        kind: 'success' or 'error'
        title: Short headline
        message: Detail text; for server errors the server message verbatim
    """
    kind: str
    title: str
    message: str
    
    SUCCESS = 'success'
    ERROR = 'error'
    
    @property
    def is_error(self) -> bool:
        return self.kind == self.ERROR
    
    def __str__(self) -> str:
        return f"{self.title}: {self.message}" if self.message else self.title
