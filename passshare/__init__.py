"""
PassShare - Async Python client for passkey file-sharing sessions.

Usage:
    >>> from passshare import PassShareClient
    >>>
    >>> async with PassShareClient("passshare") as client:
    ...     await client.login("alice", "secret1")
    ...     passkey = await client.create_session()
"""
import logging
from .client import PassShareClient

# Configuration
from .core.api import (
    APIConfig,
    ShareConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    AsyncAPIClient,
    AsyncAuthService,
    APIError,
    NetworkError,
    extract_error_message
)

# Local store
from .core.store import (
    KeyValueStorage,
    StoredUser,
    RememberedCredentials,
    SQLiteStorage,
    MemoryStorage,
    UserStore
)

# Sharing
from .core.sharing import (
    ShareSession,
    SessionPhase,
    SharedFile,
    Notice,
    generate_passkey
)
from .core.upload import LocalFile, resolve_mime_type
from .core.exceptions import (
    PassShareException,
    ValidationError,
    FileTooLargeError,
    AuthError,
    TransferError
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for passshare modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'passshare',
        'passshare.api',
        'passshare.auth',
        'passshare.client',
        'passshare.store',
        'passshare.sharing',
        'passshare.upload',
        'passshare.download',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'PassShareClient',
    'ShareSession',
    'SessionPhase',
    'SharedFile',
    'Notice',
    'LocalFile',
    'generate_passkey',
    'resolve_mime_type',
    'KeyValueStorage',
    'StoredUser',
    'RememberedCredentials',
    'SQLiteStorage',
    'MemoryStorage',
    'UserStore',
    'APIConfig',
    'ShareConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'AsyncAPIClient',
    'AsyncAuthService',
    'APIError',
    'NetworkError',
    'extract_error_message',
    'PassShareException',
    'ValidationError',
    'FileTooLargeError',
    'AuthError',
    'TransferError',
    'setup_logging',
]
