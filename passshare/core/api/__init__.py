"""PassShare API module."""
from .errors import APIError, NetworkError, extract_error_message
from .events import EventEmitter
from .config import APIConfig, ShareConfig, ProxyConfig, SSLConfig, TimeoutConfig
from .async_client import AsyncAPIClient
from .auth import AsyncAuthService, RegistrationData

__all__ = [
    'AsyncAPIClient',
    'AsyncAuthService',
    'RegistrationData',
    
    # Configuration
    'APIConfig',
    'ShareConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    
    # Errors
    'APIError',
    'NetworkError',
    'extract_error_message',
    
    # Events
    'EventEmitter',
]
