"""
Upload module for session file uploads.
"""
from .coordinator import UploadCoordinator
from .mime import resolve_mime_type, mime_type_from_extension, EXTENSION_MIME_TYPES, DEFAULT_MIME_TYPE
from .models import LocalFile, UploadProgress, UploadResult

__all__ = [
    'UploadCoordinator',
    'LocalFile',
    'UploadProgress',
    'UploadResult',
    'resolve_mime_type',
    'mime_type_from_extension',
    'EXTENSION_MIME_TYPES',
    'DEFAULT_MIME_TYPE',
]
