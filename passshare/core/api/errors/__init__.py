"""Remote API errors and exceptions."""
from .api_errors import (
    APIError,
    NetworkError,
    extract_error_message,
    NETWORK_ERROR_MESSAGE,
    GENERIC_ERROR_MESSAGE
)

__all__ = [
    'APIError',
    'NetworkError',
    'extract_error_message',
    'NETWORK_ERROR_MESSAGE',
    'GENERIC_ERROR_MESSAGE',
]
