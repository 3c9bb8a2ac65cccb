"""Download module for session file downloads."""
from .coordinator import DownloadCoordinator, safe_file_name
from .handlers import ShareHandler, LoggingShareHandler

__all__ = [
    'DownloadCoordinator',
    'ShareHandler',
    'LoggingShareHandler',
    'safe_file_name',
]
