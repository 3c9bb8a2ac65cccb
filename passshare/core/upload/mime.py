"""
MIME type resolution for uploads.

Pickers do not always report a type (iOS documents in particular), so the
declared type is only trusted when it is present and specific.
"""
from pathlib import PurePath
from typing import Optional

DEFAULT_MIME_TYPE = 'application/octet-stream'

EXTENSION_MIME_TYPES = {
    # Images
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
    'heic': 'image/heic',
    # Video and audio
    'mp4': 'video/mp4',
    'mov': 'video/quicktime',
    'avi': 'video/x-msvideo',
    'mp3': 'audio/mpeg',
    # Office documents
    'pdf': 'application/pdf',
    'doc': 'application/msword',
    'docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'xls': 'application/vnd.ms-excel',
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'ppt': 'application/vnd.ms-powerpoint',
    'pptx': 'application/vnd.openxmlformats-officedocument.presentationml.presentation',
    # Text
    'txt': 'text/plain',
    'csv': 'text/csv',
    'rtf': 'application/rtf',
    # Archives
    'zip': 'application/zip',
    'rar': 'application/vnd.rar',
    '7z': 'application/x-7z-compressed',
}


def mime_type_from_extension(file_name: str) -> Optional[str]:
    """Look up a file name's extension in the table (case-insensitive)."""
    suffix = PurePath(file_name).suffix.lower().lstrip('.')
    return EXTENSION_MIME_TYPES.get(suffix) if suffix else None


def resolve_mime_type(file_name: str, declared: Optional[str] = None) -> str:
    """
    Pick the MIME type sent with an upload.
    
    Args:
        file_name: Name of the file being uploaded
        declared: Type reported by the picker, if any
        
    Returns:
        The declared type unless it is missing or generic, then the
        extension table entry, then ``application/octet-stream``
    """
    if declared and declared.strip() and declared.strip().lower() != DEFAULT_MIME_TYPE:
        return declared.strip()
    return mime_type_from_extension(file_name) or DEFAULT_MIME_TYPE
